"""
Reporting sink interface for aggregate performance numbers.

The engine calls ``report_performance`` once when it starts and once per
device per optimization cycle. ``api_clients.CloudMinerClient`` implements
the same method over HTTP.
"""

from ai_engine.utils.logging_config import logger


class ReportingSink:
    """Receives hashrate/efficiency reports from the engine."""

    def report_performance(self, label: str, hashrate: float, efficiency: float) -> None:
        raise NotImplementedError


class NullReportingSink(ReportingSink):
    """Sink used when no collaborator is wired in; only logs."""

    def report_performance(self, label: str, hashrate: float, efficiency: float) -> None:
        logger.debug(f"Performance report {label}: hashrate={hashrate:.2f}, efficiency={efficiency:.4f}")
