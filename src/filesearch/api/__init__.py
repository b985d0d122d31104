"""HTTP proxy routes for the browser UI."""

from filesearch.api.app import AppDependencies, build_dependencies, create_app

__all__ = ["AppDependencies", "build_dependencies", "create_app"]
