#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Arrange catalog logos onto priced gang sheets and export them.
"""

# local repo modules
import gang_sheet_builder.cli


if __name__ == "__main__":
	gang_sheet_builder.cli.main()
