"""
Jenny - orchestration substrate for the Jenny bot platform.

- jenny.core: Registry, errors, settings, logging, per-run log stream
- jenny.orchestration: Module catalog, flow resolver, executor, dashboard,
  hot config loader and the flow engine that ties them together
- jenny.cli: ``jenny`` command line entry point
"""

__version__ = "0.1.0"
