from payout_planner.validation.validator import validate

__all__ = ["validate"]
