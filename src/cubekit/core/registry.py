# The registry of input adapter config
INPUT_CONFIG_REGISTRY = {}

# The registry of input adapter class
INPUT_REGISTRY = {}

def register_input_config(kind: str):
    def deco(cls):
        INPUT_CONFIG_REGISTRY[kind] = cls
        return cls
    return deco

def register_input(kind: str):
    def deco(cls):
        INPUT_REGISTRY[kind] = cls
        return cls
    return deco
