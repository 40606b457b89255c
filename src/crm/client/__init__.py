"""Python client for the CRM API -- HTTP client, record store, signals and views.

CrmApiClient talks to the REST endpoints, CrmStore mirrors server state for
UI consumers, SignalBus carries cross-view events, and AccountsView holds
the Accounts screen logic.
"""
