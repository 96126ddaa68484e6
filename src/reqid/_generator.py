"""Generator: computes RequestIDs from raw requests.

Architecture:
- GeneratorBuilder -> .build() -> Generator (immutable)
- A Generator holds a tuple of stages and a hash factory. generate_id()
  allocates its own NormalizedRequest and hash context per call, so a built
  Generator can be shared across threads.
- Building is a single-threaded setup step. The builder is not
  thread-safe and is not meant to outlive configuration.

Example::

    generator = (
        GeneratorBuilder()
        .method_restrict("GET", "HEAD")
        .query_drop_tracking()
        .build()
    )
    request_id, included = generator.generate_id(request)
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from reqid import _stages
from reqid._errors import InvalidConfigError
from reqid._registry import require
from reqid._request import NormalizedRequest, hash_request
from reqid._stages import STAGE_TYPES, run_stages
from reqid._types import EMPTY_REQUEST_ID, RequestID

if TYPE_CHECKING:
    from reqid._stages import Stage
    from reqid._types import HashFactory, RawRequest

logger = structlog.wrap_logger(
    logging.getLogger(__name__), wrapper_class=structlog.stdlib.BoundLogger
)


def _hash_name(hash_factory: HashFactory) -> str:
    return getattr(hash_factory, "__name__", type(hash_factory).__name__)


@dataclass(frozen=True, slots=True)
class Generator:
    """Immutable request ID generator.

    Validation runs at construction: every stage must be a known stage
    variant, every named stage must be registered, and the hash factory
    must build contexts whose digest() takes no arguments. Otherwise
    InvalidConfigError (or UnknownStageError) is raised.
    """

    stages: tuple[Stage, ...] = ()
    hash_factory: HashFactory = field(default=hashlib.sha256)

    def __post_init__(self) -> None:
        if self.hash_factory is None or not callable(self.hash_factory):
            msg = f"hash factory must be callable, got {self.hash_factory!r}"
            raise InvalidConfigError(msg)
        try:
            self.hash_factory().digest()
        except TypeError as exc:
            msg = f"hash factory must produce a fixed-size digest: {exc}"
            raise InvalidConfigError(msg) from exc
        object.__setattr__(self, "stages", tuple(self.stages))
        for index, stage in enumerate(self.stages):
            if not isinstance(stage, STAGE_TYPES):
                msg = f"stage {index} is not a stage: {stage!r}"
                raise InvalidConfigError(msg)
        logger.debug(
            "generator.built",
            stage_count=len(self.stages),
            hash=_hash_name(self.hash_factory),
        )

    def normalize(self, raw: RawRequest) -> NormalizedRequest:
        """Run the pipeline and return the request that would be hashed.

        Components that no stage included are emptied. An excluded request
        is returned as the excluding stage left it.
        """
        request, excluded_by = run_stages(self.stages, NormalizedRequest.from_raw(raw))
        if excluded_by is not None:
            logger.debug(
                "request.excluded",
                stage=type(excluded_by).__name__,
                method=request.method,
                path=request.path,
            )
            return request
        return request.without_disabled_components()

    def generate_id(self, raw: RawRequest) -> tuple[RequestID, bool]:
        """Compute the RequestID for a raw request.

        Returns (EMPTY_REQUEST_ID, False) when a stage excluded the request,
        otherwise (digest, True).
        """
        request = self.normalize(raw)
        if request.excluded:
            return EMPTY_REQUEST_ID, False
        return RequestID(hash_request(request, self.hash_factory)), True


class GeneratorBuilder:
    """Builder for constructing a Generator.

    Every call appends one stage. Call order is execution order: an accept
    stage after a drop stage filters what the drop stage left.
    """

    def __init__(self) -> None:
        self._stages: list[Stage] = []
        self._hash_factory: HashFactory = hashlib.sha256

    def stage(self, stage: Stage) -> GeneratorBuilder:
        """Append a prebuilt stage."""
        self._stages.append(stage)
        return self

    def hash_function(self, factory: HashFactory) -> GeneratorBuilder:
        self._hash_factory = factory
        return self

    def method_restrict(self, *methods: str) -> GeneratorBuilder:
        return self.stage(_stages.method_restrict(*methods))

    def path_restrict(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.path_restrict(*patterns))

    def path_except(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.path_except(*patterns))

    def header_accept(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.header_accept(*patterns))

    def header_accept_all(self) -> GeneratorBuilder:
        return self.stage(_stages.header_accept_all())

    def header_drop(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.header_drop(*patterns))

    def query_accept(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.query_accept(*patterns))

    def query_accept_all(self) -> GeneratorBuilder:
        return self.stage(_stages.query_accept_all())

    def query_drop(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.query_drop(*patterns))

    def query_drop_tracking(self) -> GeneratorBuilder:
        return self.stage(_stages.query_drop_tracking())

    def cookie_accept(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.cookie_accept(*patterns))

    def cookie_accept_all(self) -> GeneratorBuilder:
        return self.stage(_stages.cookie_accept_all())

    def cookie_drop(self, *patterns: str) -> GeneratorBuilder:
        return self.stage(_stages.cookie_drop(*patterns))

    def named(self, name: str) -> GeneratorBuilder:
        """Append a named stage.

        Raises:
            UnknownStageError: name is not registered.
        """
        return self.stage(require(name))

    def build(self) -> Generator:
        """Freeze the configured stages into a Generator."""
        return Generator(stages=tuple(self._stages), hash_factory=self._hash_factory)
