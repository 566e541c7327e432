"""
Tests for the remote metadata service, datasets and pom parsing.
"""

from unittest.mock import Mock

import pytest
import requests

from plugin_modernizer.cache.cache_manager import ROOT_PATH
from plugin_modernizer.exceptions import MetadataDownloadError, MetadataNotFoundError
from plugin_modernizer.metadata.datasets import (
    DependencyVersionData,
    InstallationStatsData,
    UpdateCenterData,
)
from plugin_modernizer.metadata.downloader import MetadataDownloader
from plugin_modernizer.metadata.plugin_service import RemoteMetadataService
from plugin_modernizer.metadata.pom import StaticPomParser
from plugin_modernizer.models import Component, MetadataFlag

from conftest import ENDPOINTS, UPDATE_CENTER, make_downloader

POM_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0">
  <modelVersion>4.0.0</modelVersion>
  <artifactId>foo</artifactId>
  <properties>
    <jenkins.version>2.440.3</jenkins.version>
    {properties}
  </properties>
  {scm}
</project>
"""


def write_pom(directory, properties="", scm=""):
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "pom.xml").write_text(POM_TEMPLATE.format(properties=properties, scm=scm), encoding="utf-8")
    return directory


# ── Repository names ─────────────────────────────────────────────────


class TestRepositoryName:
    def test_from_update_center_string(self, metadata_service):
        assert metadata_service.repository_name_for(Component("git")) == "git-plugin"

    def test_from_update_center_object_with_git_suffix(self, metadata_service):
        assert metadata_service.repository_name_for(Component("jackson2-api")) == "jackson2-api-plugin"

    def test_unknown_plugin(self, metadata_service):
        component = Component("unknown")
        with pytest.raises(MetadataNotFoundError):
            metadata_service.repository_name_for(component)
        assert len(component.errors) == 1
        assert component.errors[0].stage == "repository"

    def test_missing_scm(self, metadata_service):
        component = Component("no-scm")
        with pytest.raises(MetadataNotFoundError):
            metadata_service.repository_name_for(component)
        assert component.has_errors()

    def test_malformed_scm(self, metadata_service):
        with pytest.raises(MetadataNotFoundError):
            metadata_service.repository_name_for(Component("bad-scm"))

    def test_local_scm_connection(self, metadata_service, tmp_path):
        checkout = write_pom(
            tmp_path / "checkout",
            scm="<scm><connection>scm:git:https://example/org/foo-plugin.git</connection></scm>",
        )
        component = Component.build_local("foo", str(checkout))
        assert metadata_service.repository_name_for(component) == "foo-plugin"

    def test_local_github_repo_property_wins(self, metadata_service, tmp_path):
        checkout = write_pom(
            tmp_path / "checkout",
            properties="<gitHubRepo>jenkinsci/bar-plugin</gitHubRepo>",
            scm="<scm><connection>scm:git:https://example/org/foo-plugin.git</connection></scm>",
        )
        component = Component.build_local("foo", str(checkout))
        assert metadata_service.repository_name_for(component) == "bar-plugin"

    def test_local_falls_back_to_directory(self, metadata_service, tmp_path):
        checkout = write_pom(tmp_path / "baz-plugin")
        component = Component.build_local("baz", str(checkout))
        assert metadata_service.repository_name_for(component) == "baz-plugin"

    def test_local_without_pom(self, metadata_service, tmp_path):
        checkout = tmp_path / "qux-plugin"
        checkout.mkdir()
        component = Component.build_local("qux", str(checkout))
        assert metadata_service.repository_name_for(component) == "qux-plugin"
        assert not component.has_errors()

    def test_local_never_downloads(self, metadata_service, downloader, tmp_path):
        checkout = write_pom(tmp_path / "checkout")
        metadata_service.repository_name_for(Component.build_local("foo", str(checkout)))
        downloader.fetch_json.assert_not_called()


# ── Predicates ───────────────────────────────────────────────────────


class TestPredicates:
    def test_deprecated_from_deprecations(self, metadata_service):
        assert metadata_service.is_deprecated(Component("old-plugin"))

    def test_deprecated_from_label(self, metadata_service):
        assert metadata_service.is_deprecated(Component("labelled-deprecated"))

    def test_not_deprecated(self, metadata_service):
        assert not metadata_service.is_deprecated(Component("git"))

    def test_for_adoption(self, metadata_service):
        assert metadata_service.is_for_adoption(Component("old-plugin"))
        assert not metadata_service.is_for_adoption(Component("git"))

    def test_api_plugin_requires_label_and_suffix(self, metadata_service):
        assert metadata_service.is_api_plugin(Component("jackson2-api"))
        assert not metadata_service.is_api_plugin(Component("git"))

    def test_api_label_without_suffix(self, cache_manager):
        catalog = {"plugins": {"lib": {"version": "1", "labels": ["api-plugin"]}}}
        service = RemoteMetadataService(
            cache_manager, endpoints=ENDPOINTS,
            downloader=make_downloader(json_documents={ENDPOINTS.update_center_url: catalog}))
        assert not service.is_api_plugin(Component("lib"))


class TestVersionsAndScores:
    def test_current_version(self, metadata_service):
        assert metadata_service.current_version(Component("git")) == "5.2.1"

    def test_current_version_unknown(self, metadata_service):
        with pytest.raises(MetadataNotFoundError):
            metadata_service.current_version(Component("unknown"))

    def test_local_values_are_absent(self, metadata_service, tmp_path):
        component = Component.build_local("git", str(tmp_path))
        assert metadata_service.current_version(component) is None
        assert metadata_service.health_score(component) is None
        assert metadata_service.install_count(component) is None
        assert not metadata_service.has_no_known_installations(component)
        assert not metadata_service.has_low_score(component)

    def test_scores(self, metadata_service):
        assert metadata_service.health_score(Component("git")) == 100.0
        assert metadata_service.has_max_score(Component("git"))
        assert not metadata_service.has_max_score(Component("jackson2-api"))
        assert metadata_service.health_score(Component("unknown")) is None

    def test_low_score_threshold(self, metadata_service):
        assert metadata_service.has_low_score(Component("old-plugin"))
        assert not metadata_service.has_low_score(Component("jackson2-api"))
        assert metadata_service.has_low_score(Component("jackson2-api"), threshold=95)

    def test_installations(self, metadata_service):
        assert metadata_service.install_count(Component("git")) == 310000
        assert not metadata_service.has_no_known_installations(Component("git"))
        assert metadata_service.has_no_known_installations(Component("old-plugin"))
        assert metadata_service.has_no_known_installations(Component("unknown"))

    def test_metadata_flags(self, metadata_service):
        assert metadata_service.metadata_flags(Component("old-plugin")) == [
            MetadataFlag.IS_DEPRECATED,
            MetadataFlag.IS_FOR_ADOPTION,
            MetadataFlag.HAS_LOW_SCORE,
            MetadataFlag.NO_KNOWN_INSTALLATION,
        ]
        assert metadata_service.metadata_flags(Component("git")) == [MetadataFlag.HAS_MAX_SCORE]


# ── Loading and caching ──────────────────────────────────────────────


class TestDatasetLoading:
    def test_downloaded_once_per_run(self, metadata_service, downloader):
        metadata_service.is_deprecated(Component("git"))
        metadata_service.current_version(Component("git"))
        assert downloader.fetch_json.call_count == 1

    def test_persisted_before_use(self, metadata_service, cache_manager):
        metadata_service.current_version(Component("git"))
        cached = cache_manager.get(ROOT_PATH, "update-center.json", UpdateCenterData)
        assert cached.to_payload() == UPDATE_CENTER

    def test_reused_from_cache_by_new_service(self, metadata_service, cache_manager, downloader):
        metadata_service.current_version(Component("git"))
        fresh = RemoteMetadataService(cache_manager, endpoints=ENDPOINTS, downloader=make_downloader())
        assert fresh.current_version(Component("git")) == "5.2.1"
        fresh.downloader.fetch_json.assert_not_called()

    def test_reset_reloads_from_cache(self, metadata_service, downloader):
        metadata_service.current_version(Component("git"))
        metadata_service.reset()
        metadata_service.current_version(Component("git"))
        assert downloader.fetch_json.call_count == 1

    def test_download_failure_propagates(self, cache_manager):
        failing = Mock(spec=MetadataDownloader)
        failing.fetch_json.side_effect = MetadataDownloadError("offline", ENDPOINTS.update_center_url)
        service = RemoteMetadataService(cache_manager, endpoints=ENDPOINTS, downloader=failing)
        with pytest.raises(MetadataDownloadError):
            service.current_version(Component("git"))

    def test_malformed_update_center(self, cache_manager):
        service = RemoteMetadataService(
            cache_manager, endpoints=ENDPOINTS,
            downloader=make_downloader(json_documents={ENDPOINTS.update_center_url: ["not", "a", "map"]}))
        with pytest.raises(MetadataDownloadError):
            service.current_version(Component("git"))

    def test_published_versions(self, metadata_service, downloader, cache_manager):
        versions = metadata_service.published_versions("bom-2.462.x")
        assert versions == ["25", "26", "2987.v5b_8ad3a_f0fe0", "3143.v347db_7c6db_6e"]

        # Second lookup served from the version index
        assert metadata_service.published_versions("bom-2.462.x") == versions
        assert downloader.fetch_text.call_count == 1

        index = cache_manager.get(ROOT_PATH, "dependency-versions.json", DependencyVersionData)
        assert index.versions_for("io.jenkins.tools.bom:bom-2.462.x") == versions


# ── Datasets ─────────────────────────────────────────────────────────


class TestDatasets:
    def test_installation_csv_skips_bad_rows(self):
        text = "name,count\ngit,12\nbroken\nweird,abc\n"
        assert InstallationStatsData.parse_csv(text) == {"git": 12}

    def test_maven_metadata(self):
        text = "<metadata><versioning><versions><version>1</version><version> 2 </version></versions></versioning></metadata>"
        assert DependencyVersionData.parse_maven_metadata(text) == ["1", "2"]

    def test_invalid_maven_metadata(self):
        with pytest.raises(ValueError):
            DependencyVersionData.parse_maven_metadata("<metadata>")

    def test_scm_url_variants(self):
        data = UpdateCenterData(UPDATE_CENTER)
        assert data.scm_url("git") == "https://github.com/jenkinsci/git-plugin"
        assert data.scm_url("jackson2-api") == "https://github.com/jenkinsci/jackson2-api-plugin.git"
        assert data.scm_url("no-scm") is None
        assert data.scm_url("unknown") is None


class TestPomParser:
    def test_reads_namespaced_pom(self, tmp_path):
        checkout = write_pom(
            tmp_path,
            properties="<spotless.check.skip>false</spotless.check.skip>",
            scm="<scm><connection>scm:git:https://github.com/jenkinsci/foo-plugin.git</connection></scm>",
        )
        parser = StaticPomParser(str(checkout / "pom.xml"))
        assert parser.get_baseline() == "2.440.3"
        assert parser.get_properties()["spotless.check.skip"] == "false"
        assert parser.get_scm_connection() == "scm:git:https://github.com/jenkinsci/foo-plugin.git"
        assert parser.get_github_repo_property() is None

    def test_invalid_pom(self, tmp_path):
        pom = tmp_path / "pom.xml"
        pom.write_text("<project>", encoding="utf-8")
        with pytest.raises(ValueError):
            StaticPomParser(str(pom))


# ── HTTP ─────────────────────────────────────────────────────────────


class TestDownloader:
    def _session(self, status_code=200, text="{}", error=None):
        session = Mock(spec=requests.Session)
        session.headers = {}
        if error is not None:
            session.get.side_effect = error
        else:
            session.get.return_value = Mock(status_code=status_code, text=text)
        return session

    def test_user_agent(self):
        session = self._session()
        MetadataDownloader(session=session)
        assert session.headers["User-Agent"].startswith("Plugin-Modernizer/")

    def test_fetch_json(self):
        downloader = MetadataDownloader(timeout=5, session=self._session(text='{"a": 1}'))
        assert downloader.fetch_json("https://example/a.json") == {"a": 1}
        downloader.session.get.assert_called_once_with(
            "https://example/a.json", timeout=5, headers={'Accept': 'application/json'})

    def test_bad_status(self):
        downloader = MetadataDownloader(session=self._session(status_code=404))
        with pytest.raises(MetadataDownloadError) as exc_info:
            downloader.fetch_text("https://example/missing")
        assert exc_info.value.url == "https://example/missing"

    def test_network_error(self):
        downloader = MetadataDownloader(session=self._session(error=requests.exceptions.ConnectionError("down")))
        with pytest.raises(MetadataDownloadError):
            downloader.fetch_text("https://example/a")

    def test_timeout(self):
        downloader = MetadataDownloader(session=self._session(error=requests.exceptions.Timeout()))
        with pytest.raises(MetadataDownloadError):
            downloader.fetch_text("https://example/a")

    def test_invalid_json(self):
        downloader = MetadataDownloader(session=self._session(text="<html>"))
        with pytest.raises(MetadataDownloadError):
            downloader.fetch_json("https://example/a.json")
