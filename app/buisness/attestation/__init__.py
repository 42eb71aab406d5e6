"""
Attestation campaign lifecycle and targeting engine
"""
