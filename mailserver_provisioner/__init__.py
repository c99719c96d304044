"""Mail server image provisioning (Python-first, step-driven).

Core design goals:
- Strictly ordered steps with declarative run conditions
- Fail fast: the first failing step aborts the build
- Signed downloads are verified before anything is installed
- Architecture-aware package sources
- Centralized logging
"""

__all__ = []
