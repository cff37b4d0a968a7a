"""
Mock integration clients.

These clients return fake (but realistic) carrier bot and rating sheet responses
without calling any webhook. They are used when:
- No carrier webhook URLs are configured for the deployment
- We want to test dispatch end-to-end without external dependencies

Important:
- Mock clients must follow the SAME interface as real HTTP clients.
- Mock clients should return data shaped according to src/integrations/contracts/*

Switching to real:
Set the *_WEBHOOK_URL variables (or INTEGRATIONS_MODE=real) and src/api/main.py
uses the clients/real_http/* implementations instead.
"""
