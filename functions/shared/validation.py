# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

import re

from email_validator import EmailNotValidError, validate_email

NATIONAL_ID_PATTERN = re.compile(r"^\d{5,9}$")


def israeli_id_check_digit(first_eight: str) -> int:
    """Check digit for the first eight digits of an Israeli national id."""
    total = 0
    for i, char in enumerate(first_eight):
        digit = int(char) * ((i % 2) + 1)
        if digit > 9:
            digit = digit // 10 + digit % 10
        total += digit
    return (10 - total % 10) % 10


def is_valid_israeli_id(national_id: str) -> bool:
    """
    Validates an Israeli national id. Ids shorter than nine digits are
    left-padded with zeros, as issued.
    """
    national_id = (national_id or "").strip()
    if not NATIONAL_ID_PATTERN.match(national_id):
        return False
    national_id = national_id.zfill(9)
    return israeli_id_check_digit(national_id[:8]) == int(national_id[8])


def is_valid_email(email: str) -> bool:
    """Syntax check only; the domain is not looked up."""
    try:
        validate_email((email or "").strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True
