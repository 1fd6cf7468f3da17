"""
ConnectCare Clinic API

Patient, doctor and admin accounts, appointment booking, digital
prescriptions, an internal messaging inbox and a medicine store.
"""

__version__ = "1.0.0"
