import os
from typing import Any, Dict, Mapping, Optional

import attr

from queue_backends.utils import instantiate_from_dict, instantiate_from_string

ENV_PREFIX = "QUEUE_BACKENDS_"

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


@attr.s(frozen=True)
class Config(object):
    """
    Config object with hierarchy support.

    Usage example:

        defaults = Config(options={"retry_max_attempts": 3})
        config = defaults.make_child({"is_async": "true"})
        connector = SQSConnector.from_config(config)
    """

    parent = attr.ib(repr=False, default=None)  # type: Optional["Config"]
    options = attr.ib(factory=dict)  # type: Dict[str, Any]
    maker_key = attr.ib(default="maker")

    @classmethod
    def from_environ(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        prefix: str = ENV_PREFIX,
        parent: Optional["Config"] = None,
    ) -> "Config":
        """
        Collect options from environment variables starting with prefix.

        QUEUE_BACKENDS_QUEUE_PREFIX=staging_ becomes {"queue_prefix": "staging_"}
        """
        if environ is None:
            environ = os.environ
        options = {
            key[len(prefix) :].lower(): value
            for key, value in environ.items()
            if key.startswith(prefix)
        }
        return cls(parent=parent, options=options)

    def __setitem__(self, key, value):
        self.options.__setitem__(key, value)

    def __getitem__(self, item):
        if item in self.options:
            return self.options[item]
        if self.parent:
            return self.parent[item]
        raise KeyError("{0} is undefined".format(item))

    def __contains__(self, item):
        try:
            self[item]
        except KeyError:
            return False
        return True

    def get(self, item, default=None):
        try:
            return self[item]
        except KeyError:
            return default

    def get_bool(self, item, default=False) -> bool:
        """
        Get a flag. Strings like "true" or "0" (as they come from the
        environment) are converted.
        """
        value = self.get(item, default)
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in TRUE_VALUES:
                return True
            if normalized in FALSE_VALUES:
                return False
            raise ValueError("{} is not a boolean: {!r}".format(item, value))
        return bool(value)

    def get_int(self, item, default=None) -> Optional[int]:
        value = self.get(item, default)
        if value is None:
            return None
        return int(value)

    def get_instance(self, item, **kwargs):
        """
        Get an instances form the config and optional set of kwargs. The
        value is a dotted class path (e.g. "boto3.session.Session") or a dict
        with the class path under maker_key and the init kwargs.
        """
        value = self[item]
        if isinstance(value, dict):
            return instantiate_from_dict(value, maker_key=self.maker_key, **kwargs)
        else:
            return instantiate_from_string(value, **kwargs)

    def make_child(self, options=None):
        if options is None:
            options = {}
        return Config(parent=self, options=options)
