"""Batch orchestration.

Drives one run end to end:
1. Validate run configuration and parse the shared capture time
2. Load the location source once
3. Per image: probe, plan, resample, tag, finalise
4. Collect per-image outcomes into a batch report
"""
