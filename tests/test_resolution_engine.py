"""Tests for the multi-unit resolution engine."""

import os

from constants import Strictness
from errors import DiagnosticKind
from resolution import ConfigurationUnit, EvaluationConfig, FromFile, ModuleDeclaration, ResolutionEngine
from versioning.models import ArchiveOverride, BuildDirectiveOverride, ModuleSource, PatchOverride
from versioning.semver import Version

FOO = "github.com/foo/x"


def _write(directory, name, content):
    os.makedirs(str(directory), exist_ok=True)
    path = os.path.join(str(directory), name)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(content)
    return path


def _evaluate(*units, **settings):
    return ResolutionEngine(EvaluationConfig(units=list(units), **settings)).evaluate()


def _versions(evaluation):
    return {path: m.raw_version for path, m in evaluation.result.modules.items()}


class TestSelection:
    """Highest declared version wins across units."""

    def test_stale_root_requirement(self):
        """Root requests v1.0.0, another unit v1.2.0: the higher one is chosen with a warning."""
        root = ConfigurationUnit(name="root", is_root=True, module=[
            ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:old="),
        ])
        dep = ConfigurationUnit(name="b", module=[
            ModuleDeclaration(path=FOO, version="v1.2.0", sum="h1:new=", indirect=True),
        ])
        evaluation = _evaluate(root, dep)

        assert evaluation.ok
        module = evaluation.result.modules[FOO]
        assert module.raw_version == "1.2.0"
        assert module.sum == "h1:new="
        assert module.source is ModuleSource.FETCHED
        assert module.repo_name == "com_github_foo_x"
        assert evaluation.result.root_direct_deps == ["com_github_foo_x"]
        assert [w.kind for w in evaluation.warnings] == [DiagnosticKind.STALENESS]
        assert "requires module version v1.0.0, but got v1.2.0" in evaluation.warnings[0].message

    def test_stale_root_requirement_as_error(self):
        root = ConfigurationUnit(name="root", is_root=True, module=[
            ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:old="),
        ])
        dep = ConfigurationUnit(name="b", module=[ModuleDeclaration(path=FOO, version="v1.2.0", sum="h1:new=")])
        evaluation = _evaluate(root, dep, check_direct_dependencies=Strictness.ERROR)
        assert not evaluation.ok
        assert evaluation.diagnostic.kind is DiagnosticKind.STALENESS

    def test_stale_root_requirement_off(self):
        """Staleness is still recorded when reporting is turned off."""
        root = ConfigurationUnit(name="root", is_root=True, module=[
            ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:old="),
        ])
        dep = ConfigurationUnit(name="b", module=[ModuleDeclaration(path=FOO, version="v1.2.0", sum="h1:new=")])
        evaluation = _evaluate(root, dep, check_direct_dependencies=Strictness.OFF)
        assert evaluation.ok
        assert len(evaluation.warnings) == 1

    def test_unit_order_does_not_matter(self):
        units = [
            ConfigurationUnit(name="a", module=[
                ModuleDeclaration(path=FOO, version="v1.1.0", sum="h1:a="),
                ModuleDeclaration(path="example.com/y", version="v0.2.0", sum="h1:y2="),
            ]),
            ConfigurationUnit(name="b", module=[
                ModuleDeclaration(path=FOO, version="v1.3.0", sum="h1:b="),
                ModuleDeclaration(path="example.com/y", version="v0.1.0", sum="h1:y1="),
            ]),
            ConfigurationUnit(name="c", module=[ModuleDeclaration(path=FOO, version="v1.2.0", sum="h1:c=")]),
        ]
        forward = _evaluate(*units)
        backward = _evaluate(*reversed(units))
        assert _versions(forward) == _versions(backward) == {FOO: "1.3.0", "example.com/y": "0.2.0"}

    def test_modules_sorted_by_path(self):
        root = ConfigurationUnit(name="root", is_root=True, module=[
            ModuleDeclaration(path="z.com/m", version="v1.0.0", sum="h1:z="),
            ModuleDeclaration(path="a.com/m", version="v1.0.0", sum="h1:a="),
        ])
        assert list(_evaluate(root).result.modules) == ["a.com/m", "z.com/m"]

    def test_dev_dependencies(self):
        """A name that is both a dev and a regular direct dependency is reported as regular."""
        root = ConfigurationUnit(name="root", is_root=True, module=[
            ModuleDeclaration(path="example.com/dev", version="v1.0.0", sum="h1:d=", dev_dependency=True),
            ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:f=", dev_dependency=True),
            ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:f="),
        ])
        result = _evaluate(root).result
        assert result.root_direct_deps == ["com_github_foo_x"]
        assert result.root_direct_dev_deps == ["com_example_dev"]

    def test_more_than_one_root(self):
        evaluation = _evaluate(ConfigurationUnit(name="a", is_root=True), ConfigurationUnit(name="b", is_root=True))
        assert evaluation.diagnostic.kind is DiagnosticKind.CONFIGURATION


class TestConflicts:
    """Differing versions of one path within a single unit."""

    @staticmethod
    def _unit():
        return ConfigurationUnit(name="root", is_root=True, module=[
            ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:one="),
            ModuleDeclaration(path=FOO, version="v2.0.0", sum="h1:two="),
        ])

    def test_conflict_is_fatal_by_default(self):
        evaluation = _evaluate(self._unit())
        assert not evaluation.ok
        assert evaluation.diagnostic.kind is DiagnosticKind.CONFLICT
        assert evaluation.result is None

    def test_conflict_off_keeps_higher(self):
        evaluation = _evaluate(self._unit(), version_conflicts=Strictness.OFF)
        assert evaluation.ok
        assert evaluation.result.modules[FOO].raw_version == "2.0.0"
        assert [w.kind for w in evaluation.warnings] == [DiagnosticKind.CONFLICT]

    def test_conflict_warning(self):
        evaluation = _evaluate(self._unit(), version_conflicts=Strictness.WARNING)
        assert evaluation.ok
        assert evaluation.warnings[0].kind is DiagnosticKind.CONFLICT

    def test_workspace_conflict(self, tmp_path):
        """Members of one go.work requiring different versions need a manual fix."""
        work = _write(tmp_path, "go.work", "go 1.21\n\nuse (\n\t./a\n\t./b\n)\n")
        _write(tmp_path / "a", "go.mod", f"module example.com/a\n\ngo 1.21\n\nrequire {FOO} v1.0.0\n")
        _write(tmp_path / "a", "go.sum", f"{FOO} v1.0.0 h1:one=\n")
        _write(tmp_path / "b", "go.mod", f"module example.com/b\n\ngo 1.21\n\nrequire {FOO} v1.1.0\n")
        _write(tmp_path / "b", "go.sum", f"{FOO} v1.1.0 h1:two=\n")
        root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_work=work)])

        failed = _evaluate(root)
        assert failed.diagnostic.kind is DiagnosticKind.CONFLICT
        assert "manually update all go.mod files" in failed.diagnostic.remediation

        relaxed = _evaluate(root, version_conflicts=Strictness.OFF)
        assert relaxed.ok
        assert relaxed.result.modules[FOO].sum == "h1:two="


class TestFromFile:
    """Requirements loaded from go.mod and go.work files."""

    def test_go_mod_requirements(self, tmp_path):
        go_mod = _write(tmp_path, "go.mod", (
            "module example.com/root\n\ngo 1.21\n\n"
            f"require (\n\t{FOO} v1.0.0\n\tgolang.org/x/text v0.3.7 // indirect\n)\n"
        ))
        _write(tmp_path, "go.sum", (
            f"{FOO} v1.0.0 h1:foo=\n{FOO} v1.0.0/go.mod h1:foomod=\n"
            "golang.org/x/text v0.3.7 h1:text=\n"
        ))
        root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=go_mod)])
        evaluation = _evaluate(root)
        assert evaluation.ok
        assert evaluation.result.modules[FOO].sum == "h1:foo="
        assert evaluation.result.root_direct_deps == ["com_github_foo_x"]

    def test_missing_sum(self, tmp_path):
        go_mod = _write(tmp_path, "go.mod", f"module example.com/root\n\ngo 1.21\n\nrequire {FOO} v1.0.0\n")
        root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=go_mod)])
        evaluation = _evaluate(root)
        assert evaluation.diagnostic.kind is DiagnosticKind.INTEGRITY
        assert evaluation.diagnostic.message == f"No sum for {FOO}@1.0.0 found"

    def test_mismatching_sums(self):
        units = [
            ConfigurationUnit(name="a", module=[ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:a=")]),
            ConfigurationUnit(name="b", module=[ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:b=")]),
        ]
        evaluation = _evaluate(*units)
        assert evaluation.diagnostic.kind is DiagnosticKind.INTEGRITY

    def test_parse_error(self, tmp_path):
        go_mod = _write(tmp_path, "go.mod", "module example.com/root\ngo 1.21\nrequire (\n")
        root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=go_mod)])
        evaluation = _evaluate(root)
        assert evaluation.diagnostic.kind is DiagnosticKind.PARSE
        assert evaluation.diagnostic.location == f"{go_mod}:3"

    def test_old_go_version(self, tmp_path):
        go_mod = _write(tmp_path, "go.mod", "module example.com/root\ngo 1.16\n")
        root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=go_mod)])
        assert _evaluate(root).diagnostic.kind is DiagnosticKind.CONFIGURATION

    def test_go_work_only_for_root(self, tmp_path):
        work = _write(tmp_path, "go.work", "go 1.21\n")
        unit = ConfigurationUnit(name="dep", from_file=[FromFile(go_work=work)])
        evaluation = _evaluate(unit)
        assert evaluation.diagnostic.kind is DiagnosticKind.CONFIGURATION
        assert "can only be used from the root unit" in evaluation.diagnostic.message

    def test_both_go_mod_and_go_work(self, tmp_path):
        root = ConfigurationUnit(name="root", is_root=True, from_file=[
            FromFile(go_mod=str(tmp_path / "go.mod"), go_work=str(tmp_path / "go.work")),
        ])
        assert _evaluate(root).diagnostic.kind is DiagnosticKind.CONFIGURATION

    def test_multiple_from_file(self, tmp_path):
        root = ConfigurationUnit(name="root", is_root=True, from_file=[
            FromFile(go_mod=str(tmp_path / "a" / "go.mod")),
            FromFile(go_mod=str(tmp_path / "b" / "go.mod")),
        ])
        evaluation = _evaluate(root)
        assert 'Multiple "from_file" declarations' in evaluation.diagnostic.message


class TestReplacements:
    """replace directives from the root manifest."""

    @staticmethod
    def _root(tmp_path, replace_line, sums):
        go_mod = _write(tmp_path, "go.mod", (
            f"module example.com/root\n\ngo 1.21\n\nrequire {FOO} v1.0.0\n\n{replace_line}\n"
        ))
        _write(tmp_path, "go.sum", sums)
        return ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=go_mod)])

    def test_replace_with_fork(self, tmp_path):
        root = self._root(tmp_path, f"replace {FOO} v1.0.0 => github.com/fork/x v1.0.1",
                          "github.com/fork/x v1.0.1 h1:fork=\n")
        evaluation = _evaluate(root)
        assert evaluation.ok
        module = evaluation.result.modules[FOO]
        assert module.source is ModuleSource.REPLACED
        assert module.replace == "github.com/fork/x"
        assert module.raw_version == "1.0.1"
        assert module.sum == "h1:fork="
        assert evaluation.warnings == []

    def test_replace_version_guard(self, tmp_path):
        """A replace for another version of the path does not apply."""
        root = self._root(tmp_path, f"replace {FOO} v0.9.0 => github.com/fork/x v2.0.0",
                          f"{FOO} v1.0.0 h1:orig=\n")
        module = _evaluate(root).result.modules[FOO]
        assert module.source is ModuleSource.FETCHED
        assert module.replace is None
        assert module.sum == "h1:orig="

    def test_same_path_replace_updates_requested_version(self, tmp_path):
        root = self._root(tmp_path, f"replace {FOO} => {FOO} v1.1.0", f"{FOO} v1.1.0 h1:new=\n")
        evaluation = _evaluate(root)
        module = evaluation.result.modules[FOO]
        assert module.replace is None
        assert module.raw_version == "1.1.0"
        assert evaluation.warnings == []

    def test_local_replacement(self, tmp_path):
        """Local directories have no version and need no checksum."""
        root = self._root(tmp_path, f"replace {FOO} => ./third_party/x", "")
        evaluation = _evaluate(root)
        assert evaluation.ok
        module = evaluation.result.modules[FOO]
        assert module.local_path == "./third_party/x"
        assert module.version == Version.sentinel()
        assert module.sum is None

    def test_non_root_replacements_ignored(self, tmp_path):
        go_mod = _write(tmp_path, "go.mod", (
            f"module example.com/dep\n\ngo 1.21\n\nrequire {FOO} v1.0.0\n\n"
            f"replace {FOO} => github.com/fork/x v1.0.1\n"
        ))
        _write(tmp_path, "go.sum", f"{FOO} v1.0.0 h1:orig=\n")
        dep = ConfigurationUnit(name="dep", version="1.0.0", from_file=[FromFile(go_mod=go_mod)])
        module = _evaluate(dep).result.modules[FOO]
        assert module.replace is None
        assert module.sum == "h1:orig="


class TestOverrides:
    """Overrides layered onto the resolved table."""

    def test_dangling_archive_override(self):
        root = ConfigurationUnit(name="root", is_root=True, archive_override=[
            ArchiveOverride(path="example.com/missing", urls=["https://x/m.zip"]),
        ])
        evaluation = _evaluate(root)
        assert evaluation.diagnostic.kind is DiagnosticKind.CONFIGURATION
        assert "example.com/missing" in evaluation.diagnostic.message

    def test_archive_override_skips_checksum(self):
        root = ConfigurationUnit(
            name="root", is_root=True,
            module=[ModuleDeclaration(path=FOO, version="v1.0.0")],
            archive_override=[ArchiveOverride(
                path=FOO, urls=["https://x/foo.zip"], sha256="abc", strip_prefix="foo-1.0.0",
                patches=["//patches:foo.patch"], patch_strip=1,
            )],
        )
        evaluation = _evaluate(root)
        assert evaluation.ok
        module = evaluation.result.modules[FOO]
        assert module.archive.sha256 == "abc"
        assert module.patches == ["//patches:foo.patch"]
        assert module.sum is None

    def test_build_and_patch_overrides(self):
        root = ConfigurationUnit(
            name="root", is_root=True,
            module=[ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:f=")],
            build_override=[BuildDirectiveOverride(path=FOO, directives=["gazelle:proto disable"])],
            patch_override=[PatchOverride(path=FOO, patches=["//:fix.patch"], patch_strip=1)],
        )
        module = _evaluate(root).result.modules[FOO]
        assert module.build.directives == ["gazelle:proto disable"]
        assert module.patches == ["//:fix.patch"]
        assert module.patch_strip == 1

    def test_non_root_override_rejected(self):
        dep = ConfigurationUnit(name="dep", patch_override=[PatchOverride(path=FOO)])
        assert _evaluate(dep).diagnostic.kind is DiagnosticKind.CONFIGURATION

    def test_non_root_override_isolated(self):
        dep = ConfigurationUnit(
            name="dep",
            module=[ModuleDeclaration(path=FOO, version="v1.0.0", sum="h1:f=")],
            patch_override=[PatchOverride(path=FOO, patches=["//:p.patch"])],
        )
        evaluation = _evaluate(dep, isolated=True)
        assert evaluation.ok
        assert evaluation.result.modules[FOO].patches == ["//:p.patch"]


class TestExternalProviders:
    """Units that provide a Go module themselves."""

    LIB = "example.com/lib"

    def _provider(self, tmp_path, version):
        go_mod = _write(tmp_path / "lib", "go.mod", f"module {self.LIB}\n\ngo 1.21\n")
        return ConfigurationUnit(name="lib", version=version, from_file=[FromFile(go_mod=go_mod)])

    def _root(self):
        return ConfigurationUnit(name="root", is_root=True, module=[
            ModuleDeclaration(path=self.LIB, version="v1.2.0", sum="h1:lib="),
        ])

    def test_higher_provider_wins(self, tmp_path):
        evaluation = _evaluate(self._root(), self._provider(tmp_path, "1.5.0"),
                               check_direct_dependencies=Strictness.OFF)
        assert evaluation.ok
        module = evaluation.result.modules[self.LIB]
        assert module.source is ModuleSource.EXTERNAL
        assert module.provider == "lib"
        assert module.repo_name == "@lib"
        assert module.sum is None
        assert evaluation.result.root_direct_deps == []

    def test_lower_provider_warns(self, tmp_path):
        evaluation = _evaluate(self._root(), self._provider(tmp_path, "1.0.0"))
        assert evaluation.ok
        module = evaluation.result.modules[self.LIB]
        assert module.source is ModuleSource.FETCHED
        assert module.sum == "h1:lib="
        assert any('provided by unit "lib"' in w.message for w in evaluation.warnings)

    def test_unversioned_provider_wins(self, tmp_path):
        evaluation = _evaluate(self._root(), self._provider(tmp_path, ""))
        module = evaluation.result.modules[self.LIB]
        assert module.source is ModuleSource.EXTERNAL
        assert module.version.is_sentinel

    def test_overridden_path_not_provided(self, tmp_path):
        root = self._root()
        root.patch_override.append(PatchOverride(path=self.LIB, patches=["//:p.patch"]))
        evaluation = _evaluate(root, self._provider(tmp_path, "2.0.0"))
        assert evaluation.result.modules[self.LIB].source is ModuleSource.FETCHED


class TestUndecodableFiles:
    """Files that are not UTF-8 come back as diagnostics."""

    def test_go_mod(self, tmp_path):
        go_mod = tmp_path / "go.mod"
        go_mod.write_bytes(b"module example.com/root\ngo 1.21\nrequire example.com/\xff v1.0.0\n")
        root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=str(go_mod))])
        evaluation = _evaluate(root)
        assert evaluation.diagnostic.kind is DiagnosticKind.PARSE
        assert evaluation.diagnostic.location == f"{go_mod}:3"

    def test_go_sum(self, tmp_path):
        go_mod = _write(tmp_path, "go.mod", f"module example.com/root\n\ngo 1.21\n\nrequire {FOO} v1.0.0\n")
        (tmp_path / "go.sum").write_bytes(f"{FOO} v1.0.0 h1:".encode() + b"\xff=\n")
        root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=go_mod)])
        assert _evaluate(root).diagnostic.kind is DiagnosticKind.PARSE


def test_versioned_local_replacement(tmp_path):
    go_mod = _write(tmp_path, "go.mod", (
        f"module example.com/root\n\ngo 1.21\n\nrequire {FOO} v1.0.0\n\nreplace {FOO} v1.0.0 => ../x\n"
    ))
    root = ConfigurationUnit(name="root", is_root=True, from_file=[FromFile(go_mod=go_mod)])
    evaluation = _evaluate(root)
    assert evaluation.ok
    module = evaluation.result.modules[FOO]
    assert module.local_path == "../x"
    assert module.sum is None
