"""Tests for Generator and GeneratorBuilder (reqid._generator)."""

from __future__ import annotations

import hashlib
import itertools
import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from structlog.testing import capture_logs

from reqid import (
    EMPTY_REQUEST_ID,
    Generator,
    GeneratorBuilder,
    InvalidConfigError,
    Named,
    NormalizedRequest,
    RequestID,
    UnknownStageError,
)
from reqid._stages import method_restrict, query_accept_all
from reqid.http import HttpRequest
from reqid.testing import make_request


def _expected_digest(canonical: bytes) -> RequestID:
    return RequestID(hashlib.sha256(canonical).digest())


class TestGenerateId:
    def test_no_stages_hashes_method_and_path(self) -> None:
        gen = Generator()
        request_id, included = gen.generate_id(make_request("GET", "/p", query={"id": "1"}))
        assert included is True
        assert request_id == _expected_digest(
            b"method:GET\npath:%2Fp\nheader:\nquery:\ncookie:\n"
        )

    def test_digest_size(self) -> None:
        request_id, _ = Generator().generate_id(make_request())
        assert len(request_id) == 32
        assert len(request_id.hex()) == 64
        assert str(request_id) == request_id.hex()
        assert bytes(request_id) == request_id.digest

    def test_excluded_returns_empty_id(self) -> None:
        gen = GeneratorBuilder().method_restrict("GET").build()
        request_id, included = gen.generate_id(make_request("POST"))
        assert included is False
        assert request_id == EMPTY_REQUEST_ID
        assert not request_id

    def test_deterministic(self, default_generator: Generator) -> None:
        request = make_request(
            "GET",
            "/search",
            headers={"Host": "example.com", "Accept-Encoding": "gzip"},
            query={"q": "shoes", "utm_source": "mail"},
        )
        ids = {default_generator.generate_id(request)[0] for _ in range(5)}
        assert len(ids) == 1

    def test_equal_generators_agree(self) -> None:
        request = make_request(query={"id": "1"})
        a = GeneratorBuilder().query_accept_all().build()
        b = GeneratorBuilder().query_accept_all().build()
        assert a == b
        assert a.generate_id(request) == b.generate_id(request)

    def test_multimap_order_independence(self) -> None:
        gen = GeneratorBuilder().header_accept_all().query_accept_all().cookie_accept_all().build()
        headers = [("Host", "h"), ("Accept", "a"), ("X-Id", "1")]
        query = [("b", "2"), ("a", "1"), ("a", "0")]
        cookies = [("s", "1"), ("t", "2")]
        ids = set()
        for hs, qs, cs in zip(
            itertools.permutations(headers),
            itertools.permutations(query),
            itertools.permutations(cookies),
            strict=False,
        ):
            request = HttpRequest(
                path="/p",
                headers={k: (v,) for k, v in hs},
                query=make_request(query=list(qs)).query,
                cookies=tuple(cs),
            )
            ids.add(gen.generate_id(request)[0])
        assert len(ids) == 1

    def test_query_accept_ignores_other_keys(self) -> None:
        gen = GeneratorBuilder().query_accept("id").build()
        noisy = gen.generate_id(make_request(query={"id": "1", "utm_source": "x"}))
        clean = gen.generate_id(make_request(query={"id": "1"}))
        assert noisy == clean

    def test_query_drop_equals_never_present(self) -> None:
        gen = GeneratorBuilder().query_drop("utm_*").build()
        noisy = gen.generate_id(
            make_request(query={"id": "1", "utm_source": "x", "utm_medium": "y"})
        )
        clean = gen.generate_id(make_request(query={"id": "1"}))
        assert noisy == clean

    def test_query_value_matters_when_included(self) -> None:
        gen = GeneratorBuilder().query_accept_all().build()
        a = gen.generate_id(make_request(query={"id": "1"}))
        b = gen.generate_id(make_request(query={"id": "2"}))
        assert a != b

    def test_disabled_component_ignored(self) -> None:
        gen = GeneratorBuilder().query_accept_all().build()
        a = gen.generate_id(make_request(headers={"Host": "a"}, cookies={"s": "1"}))
        b = gen.generate_id(make_request(headers={"Host": "b"}, cookies={"s": "2"}))
        assert a == b

    def test_enabled_but_emptied_matches_never_enabled(self) -> None:
        request = make_request(headers={"User-Agent": "ua"})
        emptied = GeneratorBuilder().header_accept("Host").build().generate_id(request)
        never = Generator().generate_id(request)
        assert emptied == never

    def test_path_except(self) -> None:
        gen = GeneratorBuilder().path_except("/health", "/metrics*").build()
        assert gen.generate_id(make_request(path="/metrics/live"))[1] is False
        assert gen.generate_id(make_request(path="/api/users"))[1] is True

    def test_method_gate(self, default_generator: Generator) -> None:
        assert default_generator.generate_id(make_request("POST"))[1] is False
        assert default_generator.generate_id(make_request("GET"))[1] is True

    def test_custom_hash_function(self) -> None:
        gen = GeneratorBuilder().hash_function(hashlib.sha512).build()
        request_id, _ = gen.generate_id(make_request())
        assert len(request_id) == 64

    def test_raw_request_untouched(self) -> None:
        request = make_request(query={"id": "1", "utm_source": "x"})
        GeneratorBuilder().query_drop("utm_*").build().generate_id(request)
        assert request.query == {"id": ("1",), "utm_source": ("x",)}

    def test_concurrent_calls(self, default_generator: Generator) -> None:
        requests = [make_request(path=f"/item/{i}", query={"id": str(i)}) for i in range(50)]
        expected = [default_generator.generate_id(r) for r in requests]
        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(default_generator.generate_id, requests * 4))
        assert results == expected * 4


class TestNormalize:
    def test_disabled_components_emptied(self) -> None:
        gen = GeneratorBuilder().query_accept_all().build()
        req = gen.normalize(make_request(headers={"Host": "h"}, query={"id": "1"}))
        assert req.headers == {}
        assert req.query == {"id": ("1",)}

    def test_excluded_request(self) -> None:
        gen = GeneratorBuilder().method_restrict("GET").query_accept_all().build()
        req = gen.normalize(make_request("DELETE", query={"id": "1"}))
        assert isinstance(req, NormalizedRequest)
        assert req.excluded is True
        assert req.query_included is False


class TestValidation:
    def test_none_hash_factory_rejected(self) -> None:
        with pytest.raises(InvalidConfigError, match="hash factory must be callable"):
            Generator(hash_factory=None)  # type: ignore[arg-type]

    def test_non_callable_hash_factory_rejected(self) -> None:
        with pytest.raises(InvalidConfigError):
            GeneratorBuilder().hash_function("sha256").build()  # type: ignore[arg-type]

    def test_non_stage_rejected(self) -> None:
        with pytest.raises(InvalidConfigError, match="stage 1 is not a stage"):
            Generator(stages=(method_restrict("GET"), lambda r: r))  # type: ignore[arg-type]

    def test_stages_list_becomes_tuple(self) -> None:
        gen = Generator(stages=[query_accept_all()])  # type: ignore[arg-type]
        assert isinstance(gen.stages, tuple)

    def test_unknown_named_stage_fails_at_configuration(self) -> None:
        builder = GeneratorBuilder()
        with pytest.raises(UnknownStageError):
            builder.named("NormarizeAcceptEncodingGzip")

    def test_unregistered_named_stage_rejected_before_build(self) -> None:
        with pytest.raises(UnknownStageError):
            GeneratorBuilder().stage(Named("bogus")).build()  # type: ignore[arg-type]

    def test_variable_length_hash_rejected(self) -> None:
        with pytest.raises(InvalidConfigError, match="fixed-size digest"):
            GeneratorBuilder().hash_function(hashlib.shake_128).build()

    def test_generator_is_frozen(self) -> None:
        gen = Generator()
        with pytest.raises(AttributeError):
            gen.stages = ()  # type: ignore[misc]


class TestBuilder:
    def test_call_order_is_stage_order(self) -> None:
        gen = (
            GeneratorBuilder()
            .method_restrict("GET")
            .path_restrict("/api/*")
            .path_except("/api/internal*")
            .header_accept("Host")
            .query_drop_tracking()
            .cookie_drop("_ga*")
            .named("normalize-accept-encoding")
            .build()
        )
        kinds = [type(s).__name__ for s in gen.stages]
        assert kinds == [
            "MethodRestrict",
            "PathRestrict",
            "PathExcept",
            "ComponentFilter",
            "ComponentFilter",
            "ComponentFilter",
            "Named",
        ]

    def test_build_snapshots_stages(self) -> None:
        builder = GeneratorBuilder().query_accept_all()
        gen = builder.build()
        builder.method_restrict("GET")
        assert len(gen.stages) == 1

    def test_cookie_accept(self) -> None:
        gen = GeneratorBuilder().cookie_accept("session").build()
        a = gen.generate_id(make_request(cookies={"session": "1", "_ga": "x"}))
        b = gen.generate_id(make_request(cookies={"session": "1", "_ga": "y"}))
        c = gen.generate_id(make_request(cookies={"session": "2"}))
        assert a == b
        assert a != c


class TestLogging:
    def test_build_is_logged(self) -> None:
        with capture_logs() as logs:
            GeneratorBuilder().method_restrict("GET").build()
        assert len(logs) == 1
        assert logs[0]["event"] == "generator.built"
        assert logs[0]["stage_count"] == 1
        assert logs[0]["hash"].endswith("sha256")
        assert logs[0]["log_level"] == "debug"

    def test_exclusion_is_logged(self) -> None:
        gen = GeneratorBuilder().method_restrict("GET").build()
        with capture_logs() as logs:
            gen.generate_id(make_request("POST", "/x"))
        assert logs == [
            {
                "event": "request.excluded",
                "stage": "MethodRestrict",
                "method": "POST",
                "path": "/x",
                "log_level": "debug",
            }
        ]

    def test_included_request_is_quiet(self) -> None:
        gen = Generator()
        with capture_logs() as logs:
            gen.generate_id(make_request())
        assert logs == []

    def test_silent_without_host_configuration(self, capsys: pytest.CaptureFixture[str]) -> None:
        gen = GeneratorBuilder().method_restrict("GET").build()
        gen.generate_id(make_request("POST", "/x"))
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    def test_routed_through_stdlib_logging(self, caplog: pytest.LogCaptureFixture) -> None:
        gen = GeneratorBuilder().method_restrict("GET").build()
        with caplog.at_level(logging.DEBUG, logger="reqid"):
            gen.generate_id(make_request("POST", "/x"))
        records = [r for r in caplog.records if r.name == "reqid._generator"]
        assert len(records) == 1
        assert "request.excluded" in records[0].getMessage()
