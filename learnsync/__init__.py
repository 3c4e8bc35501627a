"""LearnSync Backend.

Enrollment and access-request consistency engine for a learning management
system: keeps the course enrollment tables reconciled, drives the admin
approval workflow and enrolls students into course question banks.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
