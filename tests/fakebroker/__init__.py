"""In-process beanstalkd stand-in for the test suite."""

from .server import FakeBroker

__all__ = ["FakeBroker"]
