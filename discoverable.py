"""
Curated list of model names offered for pulling
"""

# Ordered as shown in the UI; not necessarily present locally
DISCOVERABLE_MODELS = (
    'llama3:8b',
    'llama3.1:8b',
    'mistral:7b',
    'gemma:2b',
    'gemma:7b',
    'phi3:mini',
    'codellama:7b-instruct',
    'deepseek-coder:6.7b',
    'qwen2:7b',
    'tinyllama:1.1b',
)


def get_discoverable_models() -> list:
    """Return the discoverable model names in display order"""
    return list(DISCOVERABLE_MODELS)
