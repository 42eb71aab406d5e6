"""
Domain layer for the asset attestation service.
Contains campaign targeting, lifecycle state machines, record handling and
the reminder sweeps, separated from data persistence concerns.
"""
