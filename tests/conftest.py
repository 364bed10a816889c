"""Shared test fixtures for i18nxy tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from i18nxy.config import I18nConfig, config_from_dict
from i18nxy.core.keystore import KeyStore

APP_JSX = """\
import React from 'react';

export default function App({ name }) {
  const title = '你好';
  const greeting = `欢迎 ${name}`;
  return (
    <div title="标题">
      <h1>{title}</h1>
      <p>这是一个段落</p>
      <span>{greeting}</span>
    </div>
  );
}
"""

UTILS_TS = """\
export const message: string = '操作成功';
export function fail(): string {
  return "操作失败";
}
"""

BROKEN_JS = "const = ;\n"


def write_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _no_credentials(monkeypatch):
    for var in ("BAIDU_TRANSLATE_APPID", "BAIDU_TRANSLATE_KEY", "DEEPL_API_KEY"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def make_config(tmp_path):
    """Build a config whose locale directory lives under tmp_path."""
    def _make(**overrides) -> I18nConfig:
        raw = {"output_dir": str(tmp_path / "locales"), "include": ["src/**/*.{js,jsx,ts,tsx}"]}
        raw.update(overrides)
        return config_from_dict(raw)
    return _make


@pytest.fixture
def config(make_config) -> I18nConfig:
    return make_config()


@pytest.fixture
def keystore(tmp_path) -> KeyStore:
    return KeyStore(output_dir=tmp_path / "locales")


@pytest.fixture
def project(tmp_path) -> Path:
    """A small front-end project with two good files and one broken file."""
    write_file(tmp_path / "src" / "App.jsx", APP_JSX)
    write_file(tmp_path / "src" / "utils.ts", UTILS_TS)
    write_file(tmp_path / "src" / "App.test.jsx", "const t = '测试';\n")
    write_file(tmp_path / "node_modules" / "lib" / "index.js", "const x = '依赖';\n")
    return tmp_path
