#!/usr/bin/env python
# coding=utf-8
# PYTHON_ARGCOMPLETE_OK
from volumectl_cli.cli import main


if __name__ == '__main__':
    main()
