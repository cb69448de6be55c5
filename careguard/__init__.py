"""
CareGuard Clinical Safety Rule & Audit Engine
=============================================

The rule and audit core of an at-home geriatric caregiving application.
Provides field-level validation primitives, a restraint compliance module
that hard-blocks chemical restraints used for behavior control, a fall-risk
scorer, and an immutable care-event history with a 24-hour edit lock.

DISCLAIMER: This software supports documentation and compliance workflows
for caregivers.  It does not diagnose, prescribe, or replace the judgement
of a licensed healthcare professional.
"""

__version__ = "0.1.0"
