"""Business operations: checkout, webhooks, refunds, usage, and integrations."""
