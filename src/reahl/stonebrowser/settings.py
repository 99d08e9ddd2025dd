import logging
import os

MAX_ENVIRONMENT_VARIABLE = 'STONEBROWSER_MAX_ENVIRONMENT'


def boolean_flag_from_environment(environment_name):
    environment_value = os.environ.get(environment_name, '')
    normalized_environment_value = environment_value.strip().lower()
    return normalized_environment_value in {
        '1',
        'true',
        'yes',
        'on',
    }


class BrowserSettings:
    """Settings consulted while browsing; read afresh every time they are used."""

    def __init__(self, max_environment=None, environ=None):
        self.max_environment_override = max_environment
        self.environ = os.environ if environ is None else environ

    @property
    def max_environment(self):
        if self.max_environment_override is not None:
            return self.validated_max_environment(self.max_environment_override)
        return self.validated_max_environment(
            self.environ.get(MAX_ENVIRONMENT_VARIABLE, '0')
        )

    @max_environment.setter
    def max_environment(self, value):
        self.max_environment_override = value

    def validated_max_environment(self, value):
        if isinstance(value, bool):
            value = None
        try:
            max_environment = int(str(value).strip(), 10)
        except ValueError:
            max_environment = -1
        if max_environment < 0:
            logging.getLogger(__name__).warning(
                'Ignoring invalid maximum environment %r; using 0.',
                value,
            )
            return 0
        return max_environment
