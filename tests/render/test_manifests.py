# tests/render/test_manifests.py
"""
Testes da renderização de templates de manifest.

Invariantes:
    - documentos vazios são descartados
    - arquivos `_*` e extensões não-YAML não geram manifests
    - a saída segue a ordem alfabética dos arquivos
"""

from pathlib import Path

import pytest

try:
    from values_stack.expressions.context import build_context
    from values_stack.expressions.evaluator import Evaluator
    from values_stack.render.errors import ManifestRenderError, TemplatesNotFoundError
    from values_stack.render.manifests import render_manifest, render_manifests
except Exception as e:  # noqa: BLE001
    render_manifests = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(
            "Missing src/values_stack/render/manifests.py\n"
            f"Import error: {_IMPORT_ERR}"
        )


@pytest.fixture
def evaluator():
    values = {"name": "shop", "replicas": 2, "ingress": {"enabled": False}, "labels": {"tier": "web"}}
    return Evaluator(build_context(values, release={"name": "blue"}))


def test_render_multi_document_template(evaluator):
    _require_imports()
    template = (
        "apiVersion: apps/v1\n"
        "kind: Deployment\n"
        "metadata:\n"
        "  name: {{ .Values.name }}-{{ .Release.Name }}\n"
        "  labels: {{- toYaml .Values.labels | nindent 4 }}\n"
        "spec:\n"
        "  replicas: {{ .Values.replicas }}\n"
        "---\n"
        "{{- if .Values.ingress.enabled }}\n"
        "kind: Ingress\n"
        "{{- end }}\n"
    )

    documents = render_manifest(template, evaluator, name="app.yaml")

    assert documents == [
        {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {"name": "shop-blue", "labels": {"tier": "web"}},
            "spec": {"replicas": 2},
        }
    ]


def test_invalid_yaml_is_reported_with_template_name(evaluator):
    _require_imports()
    with pytest.raises(ManifestRenderError) as exc:
        render_manifest("a: [{{ .Values.name }}\n", evaluator, name="broken.yaml")
    assert exc.value.details == {"template": "broken.yaml"}
    assert exc.value.hint


def test_expression_failure_is_reported_with_template_name(evaluator):
    _require_imports()
    with pytest.raises(ManifestRenderError) as exc:
        render_manifest('data: {{ required "tag needed" .Values.tag }}\n', evaluator, name="cm.yaml")
    assert exc.value.details["template"] == "cm.yaml"
    assert exc.value.details["cause"] == "EXPRESSION_FAILED"
    assert "tag needed" in exc.value.message


def test_render_directory_skips_partials_and_other_files(evaluator, write_file, tmp_path: Path):
    _require_imports()
    write_file("templates/service.yaml", "kind: Service\nname: {{ .Values.name }}\n")
    write_file("templates/deployment.yml", "kind: Deployment\n")
    write_file("templates/_helpers.tpl", '{{ define "x" }}x{{ end }}')
    write_file("templates/_partial.yaml", "kind: Partial\n")
    write_file("templates/NOTES.txt", "{{ .Values.name }}")
    write_file("templates/empty.yaml", "{{- if false }}kind: Never{{ end }}")

    rendered = render_manifests(tmp_path / "templates", evaluator)

    assert list(rendered) == ["deployment.yml", "empty.yaml", "service.yaml"]
    assert rendered["service.yaml"] == [{"kind": "Service", "name": "shop"}]
    assert rendered["empty.yaml"] == []


def test_missing_templates_directory(evaluator, tmp_path: Path):
    _require_imports()
    with pytest.raises(TemplatesNotFoundError) as exc:
        render_manifests(tmp_path / "nope", evaluator)
    assert exc.value.details == {"path": str(tmp_path / "nope")}
