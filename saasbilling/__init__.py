"""SaaS Billing service: subscriptions, invoices, usage metering, and refunds."""
