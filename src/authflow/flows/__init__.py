from .base import AuthFlow, CachedAccountFlow
from .broker import BrokerFlow
from .device_code import DeviceCodeFlow
from .executor import AuthFlowExecutor
from .factory import create_auth_flows
from .web import WebFlow

__all__ = [
    "AuthFlow",
    "AuthFlowExecutor",
    "BrokerFlow",
    "CachedAccountFlow",
    "DeviceCodeFlow",
    "WebFlow",
    "create_auth_flows",
]
