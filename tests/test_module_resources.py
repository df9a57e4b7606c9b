from __future__ import annotations

import os

import pytest

from bothost.core.errors import ModuleResolutionError
from bothost.core.modules.resolver import ModuleResolver
from bothost.core.modules.resources import MaterializationStatus, ResourceMaterializer

from .helpers.fakes import FakeLogger, write_module_dir


def _materializer(paths):
    logger = FakeLogger()
    return ResourceMaterializer(paths=paths, resolver=ModuleResolver(modules_root=paths.modules_root, logger=logger), logger=logger)


def _tree(root):
    out = set()
    for dirpath, _dirs, files in os.walk(root):
        for f in files:
            out.add(os.path.relpath(os.path.join(dirpath, f), root).replace(os.sep, "/"))
    return out


def test_all_categories_copied_into_namespaces(paths):
    write_module_dir(
        paths.modules_root,
        "alpha",
        {
            "dist/actions/greet.js": "greet",
            "dist/actions/sub/deep.js": "deep",
            "dist/hooks/before_incoming/a.js": "hook",
            "dist/hooks/after_bot_mount/b.js": "hook",
            "dist/hooks/README.txt": "not a hook type",
            "assets/logo.png": "png",
        },
    )
    rep = _materializer(paths).materialize("alpha")
    assert rep.ok
    assert rep.results == {"actions": MaterializationStatus.COPIED, "hooks": MaterializationStatus.COPIED, "assets": MaterializationStatus.COPIED}
    assert _tree(paths.actions_dir("alpha")) == {"greet.js", "sub/deep.js"}
    assert _tree(paths.hooks_dir("before_incoming", "alpha")) == {"a.js"}
    assert _tree(paths.hooks_dir("after_bot_mount", "alpha")) == {"b.js"}
    assert sorted(os.listdir(os.path.join(paths.global_data_dir, "hooks"))) == ["after_bot_mount", "before_incoming"]
    assert _tree(paths.module_assets_dir("alpha")) == {"logo.png"}


def test_hooks_of_two_modules_do_not_collide(paths):
    write_module_dir(paths.modules_root, "alpha", {"dist/hooks/before_incoming/x.js": "alpha"})
    write_module_dir(paths.modules_root, "beta", {"dist/hooks/before_incoming/x.js": "beta"})
    m = _materializer(paths)
    m.materialize("alpha")
    m.materialize("beta")
    with open(os.path.join(paths.hooks_dir("before_incoming", "alpha"), "x.js"), encoding="utf-8") as f:
        assert f.read() == "alpha"
    with open(os.path.join(paths.hooks_dir("before_incoming", "beta"), "x.js"), encoding="utf-8") as f:
        assert f.read() == "beta"


def test_materialize_is_idempotent_and_replaces(paths):
    root = write_module_dir(paths.modules_root, "alpha", {"dist/actions/one.js": "1", "dist/actions/two.js": "2"})
    m = _materializer(paths)
    m.materialize("alpha")
    first = _tree(paths.actions_dir("alpha"))
    m.materialize("alpha")
    assert _tree(paths.actions_dir("alpha")) == first == {"one.js", "two.js"}

    os.remove(os.path.join(root, "dist", "actions", "two.js"))
    m.materialize("alpha")
    assert _tree(paths.actions_dir("alpha")) == {"one.js"}


def test_missing_sources_are_skipped(paths):
    write_module_dir(paths.modules_root, "bare", {"README.md": "nothing to copy"})
    rep = _materializer(paths).materialize("bare")
    assert rep.ok
    assert set(rep.results.values()) == {MaterializationStatus.SKIPPED}
    assert not os.path.exists(paths.actions_dir("bare"))


def test_unresolvable_module_fails_every_category(paths):
    rep = _materializer(paths).materialize("ghost")
    assert not rep.ok
    assert set(rep.results.values()) == {MaterializationStatus.FAILED}
    assert set(rep.errors) == {"actions", "hooks", "assets"}
    assert rep.to_dict()["results"]["hooks"] == "failed"


def test_tenant_dir(paths):
    m = _materializer(paths)
    d = m.tenant_dir("bot-1", "alpha")
    assert os.path.isdir(d)
    assert d == paths.bot_module_dir("bot-1", "alpha")
    assert not os.path.exists(m.tenant_dir("bot-2", "alpha", create=False))
    with pytest.raises(ValueError):
        m.tenant_dir("../escape", "alpha")


def test_resolver_locations(paths, tmp_path):
    write_module_dir(paths.modules_root, "alpha")
    r = ModuleResolver(modules_root=paths.modules_root, logger=FakeLogger())
    expected = os.path.join(paths.modules_root, "alpha")
    assert r.resolve("MODULES_ROOT/alpha") == expected
    assert r.resolve("MODULES_ROOT/ALPHA") == expected
    assert r.resolve("alpha") == expected
    assert r.resolve(str(tmp_path)) == str(tmp_path)

    for bad in ("", "MODULES_ROOT/", "MODULES_ROOT/../alpha", "MODULES_ROOT/ghost", str(tmp_path / "nowhere")):
        with pytest.raises(ModuleResolutionError):
            r.resolve(bad)


def test_one_category_failing_leaves_the_others_copied(paths):
    write_module_dir(
        paths.modules_root,
        "alpha",
        {"dist/actions/a.js": "a", "dist/hooks/before_incoming/h.js": "h", "assets/logo.png": "png"},
    )
    # a plain file where the actions namespace directory should be
    os.makedirs(paths.global_data_dir, exist_ok=True)
    with open(os.path.join(paths.global_data_dir, "actions"), "w", encoding="utf-8") as f:
        f.write("in the way")

    rep = _materializer(paths).materialize("alpha")
    assert rep.to_dict()["results"] == {"actions": "failed", "hooks": "copied", "assets": "copied"}
    assert set(rep.errors) == {"actions"}
    assert isinstance(rep.failures["actions"], OSError)
    assert "failures" not in rep.to_dict()
    assert _tree(paths.hooks_dir("before_incoming", "alpha")) == {"h.js"}
    assert _tree(paths.module_assets_dir("alpha")) == {"logo.png"}
