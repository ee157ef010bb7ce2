"""
Fleet Mining API Clients

This package provides HTTP clients for the collaborators of the AI mining
engine, such as the cloud miner that receives performance reports.
"""

from .cloud_miner_client import CloudMinerClient
from .schemas import PerformanceReport

__all__ = ['CloudMinerClient', 'PerformanceReport']
