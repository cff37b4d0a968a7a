"""
Real HTTP integration clients.

These clients communicate with external systems via HTTP webhooks:
- the Encova, Guard and Columbia RPA bots
- the Novatae rating spreadsheet service

Important:
- Must implement the same interfaces as the mock clients
- Must return data shaped according to src/integrations/contracts/*

Switching:
The selection of mock vs real clients should happen in src/api/main.py only.
"""
