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


import unittest

from shared import validation


class ValidationTest(unittest.TestCase):

    def test_valid_ids(self):
        self.assertTrue(validation.is_valid_israeli_id("123456782"))
        self.assertTrue(validation.is_valid_israeli_id("200000008"))
        self.assertTrue(validation.is_valid_israeli_id(" 123456782 "))

    def test_short_ids_are_zero_padded(self):
        # 000012344 -> check digit 4
        self.assertTrue(validation.is_valid_israeli_id("12344"))

    def test_invalid_ids(self):
        self.assertFalse(validation.is_valid_israeli_id("123456789"))
        self.assertFalse(validation.is_valid_israeli_id("12345678a"))
        self.assertFalse(validation.is_valid_israeli_id("1234"))
        self.assertFalse(validation.is_valid_israeli_id(""))
        self.assertFalse(validation.is_valid_israeli_id(None))

    def test_check_digit(self):
        self.assertEqual(validation.israeli_id_check_digit("12345678"), 2)
        self.assertEqual(validation.israeli_id_check_digit("00000000"), 0)

    def test_valid_emails(self):
        self.assertTrue(validation.is_valid_email("dana@ono.ac.il"))
        self.assertTrue(validation.is_valid_email("yossi.cohen@student.ono.ac.il"))
        self.assertTrue(validation.is_valid_email(" ron@ono.ac.il "))

    def test_invalid_emails(self):
        self.assertFalse(validation.is_valid_email("dana"))
        self.assertFalse(validation.is_valid_email("dana@"))
        self.assertFalse(validation.is_valid_email("@ono.ac.il"))
        self.assertFalse(validation.is_valid_email("dana@ono"))
        self.assertFalse(validation.is_valid_email("dana lev@ono.ac.il"))
        self.assertFalse(validation.is_valid_email(""))
        self.assertFalse(validation.is_valid_email(None))


if __name__ == "__main__":
    unittest.main()
