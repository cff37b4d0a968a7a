"""
Integrations layer.
This package contains all code used to communicate with external systems such as:
- Carrier RPA bots (Encova, Guard, Columbia) reached over webhooks
- The spreadsheet rating service used for Novatae premiums

Key rule:
- API handlers MUST NOT call carrier webhooks directly.
- Handlers go through the dispatch service (src/integrations/policy), which uses
  the bot clients under src/integrations/clients.
- We use MOCK clients during development and swap to REAL_HTTP clients when webhooks are configured.

Switching implementations:
- The selection of mock vs real clients happens in ONE place (src/api/main.py).
"""
