"""
Core do values-stack.

Componentes principais:
    - config       → settings da ferramenta (defaults, merge, hashing)
    - engine       → Resolver e execução controlada dos estágios
    - traceability → Resolution Manifest e Event Log
    - context      → log estruturado e warnings por estágio
    - errors       → ErrorPayload e catálogo de tipos de erro

Princípios fundamentais:
    - Nenhuma decisão silenciosa: todo comportamento é explícito e testado
    - Estado e efeitos colaterais são sempre rastreáveis

Limites explícitos:
    - Não depende de CLI ou serviços externos
"""
