"""CRM records -- accounts, contacts, deals, leads, activities, user profiles.

Models, wire schemas, categorical normalization and the async repository
that the API layer drives.
"""
