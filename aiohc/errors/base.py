class AiohcError(Exception):
    ...
