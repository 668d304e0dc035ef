"""Contact and quote forms delivered as email notifications."""
