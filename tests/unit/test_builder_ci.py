"""Unit tests for the release orchestration layer (builder_ci)."""

from datetime import date
from pathlib import Path

import httpx
import pytest

from builder_ci import fetcher, publisher
from builder_ci.fetcher import load_release_config
from builder_ci.main import ReleaseJob, plan_jobs, run_job
from builder_ci.manifest import (
    compare_revisions,
    create_release_manifest,
    load_release_manifest,
    should_publish,
    write_release_manifest,
)
from builder_ci.readme import generate_readme
from yomitan_dict_builder.config import BuildOptions, Flavor, Langs


def _dict(name: str, revision: str, status: str = "built", **extra) -> dict:
    return {
        "name": name,
        "flavor": "main",
        "source": "de",
        "target": "en",
        "revision": revision,
        "status": status,
        **extra,
    }


class TestReleaseConfig:
    """release.yml 読み込みのテスト."""

    def test_load(self, tmp_path: Path) -> None:
        path = tmp_path / "release.yml"
        path.write_text(
            "editions: [en, DE]\nsources: [de, grc]\nglossary_targets: [ja]\n",
            encoding="utf-8",
        )

        config = load_release_config(path)

        assert config["editions"] == ["en", "de"]
        assert config["sources"] == ["de", "grc"]
        assert config["flavors"] == ["main", "ipa", "ipa-merged", "glossary"]
        assert config["publish"] == {}

    def test_bundled_config_loads(self) -> None:
        config = load_release_config(Path(__file__).parents[2] / "builder_ci" / "release.yml")

        assert "en" in config["editions"]

    def test_unknown_edition(self, tmp_path: Path) -> None:
        path = tmp_path / "release.yml"
        path.write_text("editions: [xx]\n", encoding="utf-8")

        with pytest.raises(ValueError):
            load_release_config(path)


class TestPlanJobs:
    """plan_jobs() のテスト."""

    def test_jobs_per_edition(self) -> None:
        config = {
            "editions": ["en", "de"],
            "sources": ["de", "fr"],
            "glossary_targets": ["en", "ja"],
            "flavors": ["main", "ipa-merged", "glossary"],
        }

        names = [job.name() for job in plan_jobs(config)]

        assert names == [
            "wty-de-en",
            "wty-fr-en",
            "wty-en-ipa",
            "wty-en-ja-gloss",
            "wty-de-de",
            "wty-fr-de",
            "wty-de-ipa",
            "wty-de-en-gloss",
            "wty-de-ja-gloss",
        ]

    def test_simple_edition_pairs_with_itself(self) -> None:
        config = {"editions": ["simple"], "sources": ["en", "simple"], "glossary_targets": [], "flavors": ["main"]}

        assert [job.name() for job in plan_jobs(config)] == ["wty-simple-simple"]

    def test_glossary_extended_is_not_released(self) -> None:
        config = {"editions": ["en"], "sources": [], "glossary_targets": [], "flavors": ["glossary-extended"]}

        assert plan_jobs(config) == []


class TestRunJob:
    """run_job() のテスト."""

    def test_failure_is_recorded(self, tmp_path: Path) -> None:
        job = ReleaseJob(Flavor.MAIN, Langs("en", "de", "en"))

        record = run_job(job, BuildOptions(root_dir=tmp_path))

        assert record["status"] == "failed"
        assert record["name"] == "wty-de-en"
        assert "No corpus" in record["error"]

    def test_built_record_carries_health(self, tmp_path: Path, write_jsonl) -> None:
        write_jsonl(
            tmp_path / "kaikki" / "en-extract.jsonl",
            [{"word": "Haus", "lang_code": "de", "pos": "noun", "senses": [{"glosses": ["house"]}]}],
        )
        job = ReleaseJob(Flavor.MAIN, Langs("en", "de", "en"))

        record = run_job(job, BuildOptions(root_dir=tmp_path, snapshot_date=date(2026, 2, 22)))

        assert record["status"] == "built"
        assert record["revision"] == "2026.02.22"
        assert record["package"] == "dict/en/de/wty-de-en.zip"
        assert record["health_checks"]["bad_rows"] == 0
        assert set(record["health_checks"]) == {
            "index_problems",
            "bad_rows",
            "missing_tag_references",
            "duplicate_bank_tags",
        }


class TestManifest:
    """リリースマニフェストのテスト."""

    def test_write_and_load(self, tmp_path: Path) -> None:
        manifest = create_release_manifest([_dict("wty-fr-en", "2026.02.22"), _dict("wty-de-en", "2026.02.22")])
        path = tmp_path / "release_manifest.json"

        write_release_manifest(manifest, path)
        loaded = load_release_manifest(path)

        assert [d["name"] for d in loaded["dictionaries"]] == ["wty-de-en", "wty-fr-en"]
        assert loaded["release_info"]["total"] == 2
        assert load_release_manifest(tmp_path / "missing.json") == {}

    def test_compare_revisions(self) -> None:
        old = create_release_manifest(
            [_dict("wty-de-en", "2026.02.01"), _dict("wty-fr-en", "2026.02.01"), _dict("wty-es-en", "2026.02.01")]
        )
        new = create_release_manifest(
            [
                _dict("wty-de-en", "2026.02.22"),
                _dict("wty-fr-en", "2026.02.01"),
                _dict("wty-it-en", "2026.02.22"),
                _dict("wty-ja-en", "", status="failed", error="boom"),
            ]
        )

        comparison = compare_revisions(old, new)

        assert comparison["changed"] == [
            {"name": "wty-de-en", "old_revision": "2026.02.01", "new_revision": "2026.02.22"}
        ]
        assert comparison["added"] == [{"name": "wty-it-en"}]
        assert comparison["removed"] == [{"name": "wty-es-en"}]
        assert comparison["unchanged"] == [{"name": "wty-fr-en"}]
        assert new["release_info"]["failed"] == 1

    def test_should_publish(self) -> None:
        nothing = {"changed": [], "added": [], "removed": [], "unchanged": [{"name": "wty-de-en"}]}

        assert should_publish(nothing) is False
        assert should_publish(nothing, force=True) is True
        assert should_publish({**nothing, "added": [{"name": "wty-it-en"}]}) is True


class TestReadme:
    """generate_readme() のテスト."""

    def test_lists_dictionaries(self) -> None:
        manifest = create_release_manifest(
            [
                _dict("wty-de-en", "2026.02.22", entries_written=1200),
                _dict("wty-ja-en", "", status="failed", error="boom"),
            ]
        )

        readme = generate_readme(manifest, "someone/dicts")

        assert readme.startswith("---\nlicense: cc-by-sa-4.0")
        assert "# someone/dicts" in readme
        assert "| wty-de-en | de | en | 2026.02.22 | 1,200 | `dict/en/de/wty-de-en.zip` |" in readme
        assert "- wty-ja-en: boom" in readme


class TestFetchCorpora:
    """fetch_corpora() のテスト."""

    def test_failure_is_recorded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fake_download(edition: str, dest: Path, force: bool = False) -> dict:
            if edition == "fr":
                raise httpx.ConnectError("unreachable")
            return {"edition": edition, "path": str(dest), "skipped": False}

        monkeypatch.setattr(fetcher, "download_kaikki_jsonl", fake_download)

        results = fetcher.fetch_corpora(["en", "fr"], tmp_path)

        assert results[0]["path"] == str(tmp_path / "kaikki" / "en-extract.jsonl.gz")
        assert results[1] == {"edition": "fr", "error": "unreachable", "skipped": False}


class TestPublisher:
    """publish_release() のテスト（Hub へのアクセスは差し替える）."""

    def test_single_commit_mirrors_layout(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        package = tmp_path / "dict" / "en" / "de" / "wty-de-en.zip"
        package.parent.mkdir(parents=True)
        package.write_bytes(b"zip")
        index = tmp_path / "index" / "wty-de-en-index.json"
        index.parent.mkdir()
        index.write_text("{}", encoding="utf-8")
        (tmp_path / "temp").mkdir()
        (tmp_path / "temp" / "leftover.json").write_text("{}", encoding="utf-8")
        readme = tmp_path / "README.md"
        readme.write_text("# dicts\n", encoding="utf-8")

        commits: list[dict] = []

        class FakeApi:
            def __init__(self, token: str) -> None:
                self.token = token

            def create_commit(self, **kwargs) -> None:
                commits.append(kwargs)

        monkeypatch.setattr(publisher, "HfApi", FakeApi)
        monkeypatch.setattr(publisher, "create_repo", lambda **kwargs: None)

        publisher.publish_release(tmp_path, tmp_path / "release_manifest.json", readme, "someone/dicts", "tok")

        [commit] = commits
        assert commit["repo_id"] == "someone/dicts"
        assert commit["repo_type"] == "dataset"
        assert [op.path_in_repo for op in commit["operations"]] == [
            "dict/en/de/wty-de-en.zip",
            "index/wty-de-en-index.json",
            "README.md",
        ]

    def test_nothing_to_publish(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(**kwargs) -> None:
            raise AssertionError("create_repo must not be called")

        monkeypatch.setattr(publisher, "create_repo", fail)

        publisher.publish_release(tmp_path, tmp_path / "m.json", tmp_path / "README.md", "someone/dicts", "tok")
