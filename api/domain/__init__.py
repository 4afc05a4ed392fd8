# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the BloodLink platform.

This package contains pure business logic functions with no side effects:
distance evaluation, the proximity notification rule, the report counter
and pre-submission validation.
"""
