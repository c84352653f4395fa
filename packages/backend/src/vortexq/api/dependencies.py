"""FastAPI dependencies for the broker API.

Learn: The broker, metrics and version live on app.state, set up by
create_app(). Handlers pull them through Depends() so tests can swap any
of them with app.dependency_overrides.
"""

from fastapi import Request

from vortexq.broker.core import VortexQ
from vortexq.metrics import BrokerMetrics
from vortexq.version import Version


def get_broker(request: Request) -> VortexQ:
    return request.app.state.broker


def get_metrics(request: Request) -> BrokerMetrics:
    return request.app.state.metrics


def get_version(request: Request) -> Version:
    return request.app.state.version


def is_shutting_down(request: Request) -> bool:
    return request.app.state.shutting_down
