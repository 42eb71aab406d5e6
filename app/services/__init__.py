"""
Services Layer
Outbound collaborators used by the attestation core.

Services should:
- Not modify core data models or business logic
- Report delivery problems as results instead of raising
- Be safe to call from worker threads
"""
