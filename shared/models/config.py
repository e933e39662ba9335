from typing import Literal

from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Declares one environment setting a client engine depends on.

    The full key is built by the client as ``{CLIENT_TYPE}_{ENGINE}_{ENV_KEY}``,
    e.g. ``EMBED_OLLAMA_BASE_URL``.

    Attributes:
        env_key (str): The engine-relative key name (e.g. "BASE_URL").
        val_type (str): How the raw value is parsed: "string", "number", "bool" or "list".
        default (str | int | float | bool | list | None): Fallback when the variable is unset. None marks the setting as required.
    """

    env_key: str
    val_type: Literal["string", "number", "bool", "list"] = "string"
    default: str | int | float | bool | list | None = None
