# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

import sys

from pkarr.cli import main

if __name__ == '__main__':
    sys.exit(main())
