# tests/conftest.py
"""
Fixtures compartilhados para testes do values-stack.

Este módulo define fixtures reutilizáveis que fornecem:
- um escritor de arquivos relativo ao `tmp_path`
- um diretório de values no layout por convenção (global, env, region)
- camadas e store em memória
- contexto de resolução determinístico (ResolutionContext)
- um schema reduzido e coerente com o layout de exemplo

Decisões arquiteturais:
    - Fixtures são mantidas simples e explícitas
    - Todo I/O acontece sob `tmp_path`
    - Imports do projeto são realizados de forma lazy para
      melhorar a clareza de erros durante falhas

Invariantes:
    - Nenhuma fixture executa uma resolução real
    - Dados retornados são determinísticos e isolados
    - Todas as fixtures são seguras para execução em paralelo

Limites explícitos:
    - Não substituir testes de integração (ver tests/e2e)
    - Não conter lógica condicional complexa
"""

import textwrap
from pathlib import Path

import pytest


@pytest.fixture
def write_file(tmp_path: Path):
    """
    Fixture factory que escreve arquivos de texto relativos ao `tmp_path`.

    O conteúdo é normalizado com `textwrap.dedent`, permitindo YAML
    indentado dentro dos testes. Diretórios intermediários são criados.

    Returns:
        Callable[[str, str], Path]: função (caminho relativo, conteúdo) → Path.
    """

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def values_root(tmp_path: Path, write_file) -> Path:
    """
    Fixture que cria um diretório de values no layout por convenção.

    Layout:
        values.yaml                 → global
        values-prod.yaml            → environment `prod`
        regions/eu/values.yaml      → region `eu` (qualquer environment)
        values-prod-eu.yaml         → environment `prod` + region `eu`

    O global usa expressões que dependem de outras chaves, permitindo
    exercitar a avaliação lazy após o merge.

    Returns:
        Path: diretório raiz das camadas.
    """
    write_file(
        "values.yaml",
        """\
        app:
          name: shop
          fullname: "{{ .Values.app.name }}-{{ .Release.Name }}"
        image:
          repository: nginx
          tag: "1.0"
          ref: "{{ .Values.image.repository }}:{{ .Values.image.tag }}"
        replicas: 1
        resources:
          limits:
            cpu: 100m
        ports:
          - name: http
            port: 80
        """,
    )
    write_file(
        "values-prod.yaml",
        """\
        image:
          tag: "2.0"
        replicas: 3
        """,
    )
    write_file(
        "regions/eu/values.yaml",
        """\
        ingress:
          host: eu.example.com
        """,
    )
    write_file(
        "values-prod-eu.yaml",
        """\
        replicas: 5
        resources:
          limits:
            cpu: 500m
        """,
    )
    return tmp_path


@pytest.fixture
def make_layer():
    """
    Fixture factory que cria camadas em memória.

    Returns:
        Callable: (name, values, scope="global", **kwargs) → Layer.
    """
    from values_stack.layers.model import Layer

    def _make(name: str, values: dict, scope: str = "global", **kwargs):
        return Layer(name=name, scope=scope, values=values, **kwargs)

    return _make


@pytest.fixture
def dummy_ctx():
    """
    Fixture que fornece um ResolutionContext determinístico.

    `run_id` e `created_at` são fixos; settings são os defaults embutidos.
    """
    from values_stack.core.config.defaults import default_settings
    from values_stack.core.context import ResolutionContext

    return ResolutionContext(
        run_id="run-test-001",
        created_at="2026-01-16T00:00:00+00:00",
        settings=default_settings(),
        environment="prod",
        region=None,
    )


@pytest.fixture
def sample_schema() -> dict:
    """
    Schema reduzido coerente com `values_root`.

    Exige `replicas` inteiro entre 1 e 10 e `image.tag` string não vazia.
    """
    return {
        "type": "object",
        "required": ["image", "replicas"],
        "properties": {
            "replicas": {"type": "integer", "minimum": 1, "maximum": 10},
            "image": {
                "type": "object",
                "required": ["repository", "tag"],
                "properties": {
                    "repository": {"type": "string"},
                    "tag": {"type": "string", "minLength": 1},
                },
            },
        },
    }
