"""
Data Gateway

Polls the tracker API and forwards machine snapshots to SCADA-side sinks.
"""
