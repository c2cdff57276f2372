import re

from django.core.exceptions import ValidationError

PASSWORD_POLICY = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$')
PASSWORD_POLICY_MESSAGE = (
    'Password must be at least 8 characters long and contain an uppercase letter, '
    'a lowercase letter, a digit and a special character (@$!%*?&).'
)


class ComplexityValidator:
    """Django password validator enforcing the staff password policy."""

    def validate(self, password, user=None):
        if not PASSWORD_POLICY.match(password or ''):
            raise ValidationError(PASSWORD_POLICY_MESSAGE, code='password_too_weak')

    def get_help_text(self):
        return PASSWORD_POLICY_MESSAGE
