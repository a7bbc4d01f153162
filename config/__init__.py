# DEPENDENCIES
from .settings import settings
from .risk_rules import RiskRules
from .model_config import ModelConfig


__all__ = ['settings',
           'RiskRules',
           'ModelConfig',
          ]
