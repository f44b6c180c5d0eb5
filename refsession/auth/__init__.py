"""Login flow: parsing, submission, outcome classification and orchestration."""
