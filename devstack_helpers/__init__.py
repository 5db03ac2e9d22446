"""Helpers for bootstrapping a single-host cloud deployment.

- Service registry with group-aware membership
- OS/distro detection, detected once per context
- Per-service package manifests filtered by distro
- Thin wrappers over apt/yum/zypper/pip, git, screen and glance
"""

__all__ = []
