"""Function packaging: exclusion rules, artifact collection and dist builds."""

from lambdakit.services.packaging.artifact_collector import collect_artifacts, write_archive
from lambdakit.services.packaging.packaging_service import PackagingService, resolve_package_root
from lambdakit.services.packaging.rule_matcher import RuleMatcher

__all__ = ["PackagingService", "RuleMatcher", "collect_artifacts", "resolve_package_root", "write_archive"]
