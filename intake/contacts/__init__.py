"""
Contacts Module
===============

Bounded Context for contact-form intake and admin triage.

Responsibilities:
- Accept public contact submissions and reject rapid duplicates
- Classify priority from the service category and compute SLA deadlines
- Let administrators list, filter, update, assign and soft delete contacts
- Serve a customer-safe tracking view and dashboard statistics
- Escalate contacts that run past their SLA to Slack
"""

__version__ = "1.0.0"
