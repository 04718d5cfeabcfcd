"""
Services.

Business logic layer.
"""

# Base Service Infrastructure
from app.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
    transaction,
)

# Aggregation & Ranking
from app.services.creator_stats_service import CreatorStatsService
from app.services.member_stats_service import MemberStatsService
from app.services.ranking_service import RankingService

# Maintenance
from app.services.counter_service import CounterService
from app.services.referral_code_service import ReferralCodeService

# Value & Invoicing
from app.services.value_metrics_service import ValueMetricsService
from app.services.invoice import InvoiceGenerator, InvoiceStatusService

# Composition
from app.services.dashboard_service import DashboardService


__all__ = [
    # Base Infrastructure
    "BaseService",
    "ServiceResult",
    "transaction",
    "log_operation",
    # Aggregation & Ranking
    "CreatorStatsService",
    "MemberStatsService",
    "RankingService",
    # Maintenance
    "CounterService",
    "ReferralCodeService",
    # Value & Invoicing
    "ValueMetricsService",
    "InvoiceGenerator",
    "InvoiceStatusService",
    # Composition
    "DashboardService",
]
