from .aggregator import OTHER_LAYER, aggregate, layer_of
from .models import Report, RuleVerdict

__all__ = ["OTHER_LAYER", "Report", "RuleVerdict", "aggregate", "layer_of"]
