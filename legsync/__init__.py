"""legsync — option leg reconciliation and strategy risk metrics."""

from legsync.pipeline.reconciler import ReconciledPosition, ReconciliationResult, reconcile
from legsync.pipeline.risk_metrics import RiskProfile, compute_risk_profile
from legsync.pipeline.statement_trades import group_statement_trades
from legsync.pipeline.strategy_engine import classify
from legsync.services.live_model_service import LiveModel, build_live_model

__version__ = "0.1.0"

__all__ = [
    "classify", "compute_risk_profile", "reconcile", "build_live_model", "group_statement_trades",
    "LiveModel", "ReconciledPosition", "ReconciliationResult", "RiskProfile",
]
