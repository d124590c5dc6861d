"""ValidationService - resolve every entry of a configuration document.

Validation accumulates: every entry is resolved and every issue is
reported, rather than stopping at the first failure.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic_core import to_jsonable_python

from supervisectl.domain.resolver import Resolver, ResolverPolicy
from supervisectl.infrastructure.documents import DocumentError, load_document
from supervisectl.services.base import BaseService
from supervisectl.services.result import ReportedIssue, ServiceError, ServiceResult

if TYPE_CHECKING:
    from supervisectl.domain.registry import DirectiveRegistry
    from supervisectl.domain.values import ParsedDocument
    from supervisectl.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class ValidationService(BaseService):
    """Validates parsed documents and builds their domain objects."""

    def __init__(
        self,
        registry: DirectiveRegistry,
        *,
        policy: ResolverPolicy | None = None,
        plugins: PluginManager | None = None,
    ) -> None:
        super().__init__(registry, plugins=plugins)
        self._resolver = Resolver(registry, policy)

    @property
    def resolver(self) -> Resolver:
        return self._resolver

    def validate(self, document: ParsedDocument) -> ServiceResult:
        """Resolve every entry in *document*."""
        source = document.source or "<memory>"
        objects: list[dict[str, Any]] = []
        issues: list[ReportedIssue] = []
        warnings: list[str] = []

        for index, entry in enumerate(document.entries):
            resolution = self._resolver.resolve_entry(entry)
            warnings.extend(resolution.warnings)
            if resolution.ok:
                objects.append(
                    {
                        "index": index,
                        "directive": entry.directive,
                        "name": entry.name,
                        "variant": resolution.variant,
                        "value": to_jsonable_python(resolution.value),
                    }
                )
            else:
                issues.extend(
                    ReportedIssue.from_issue(issue, entry=index) for issue in resolution.issues
                )

        self._notify_validated(source, len(document.entries), len(issues), warnings)
        logger.debug(
            "Validated %s: %d entries, %d issues", source, len(document.entries), len(issues)
        )

        data = {
            "source": source,
            "entries": len(document.entries),
            "objects": objects,
            "count": len(issues),
        }
        meta = {"policy": self._resolver.policy.model_dump(mode="json")}
        if not issues:
            return ServiceResult(ok=True, op="validate", data=data, warnings=warnings, meta=meta)

        return ServiceResult(
            ok=False,
            op="validate",
            data=data,
            issues=issues,
            warnings=warnings,
            meta=meta,
            error=ServiceError(
                code="INVALID_CONFIG",
                message=f"{len(issues)} issue(s) in {source}",
                detail={"entries": sorted({i.entry for i in issues})},
            ),
        )

    def validate_path(self, path: Path) -> ServiceResult:
        """Load *path* and validate it; unreadable documents fail cleanly."""
        try:
            document = load_document(path)
        except DocumentError as exc:
            return ServiceResult(
                ok=False,
                op="validate",
                data={"source": str(path)},
                error=ServiceError(
                    code="DOCUMENT_ERROR",
                    message=str(exc),
                    detail={"source": str(path)},
                ),
            )
        return self.validate(document)
