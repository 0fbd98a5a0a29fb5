# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m hex2dfu` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``hex2dfu.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``hex2dfu.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import click

from .__init__ import __version__
from .base import build
from .image import ConversionError

EXIT_FAILURE: int = 1
r"""Exit code for input or output file errors."""

EXIT_INVALID: int = 3
r"""Exit code for invalid input files, in strict mode."""

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ============================================================================

@click.command()
@click.option('--strict', is_flag=True, help="""
    Exits with an error code when the input file is rejected.
    By default the exit code is zero, and only the error message tells the
    failure apart.
""")
@click.option('-v', '--version', is_flag=True, is_eager=True,
              expose_value=False, callback=print_version, help="""
    Prints the package version number.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
@click.pass_context
def main(
    ctx: click.Context,
    strict: bool,
    infile: str,
    outfile: str,
) -> None:
    r"""Converts a PIC16F1454 Intel HEX file into a USB DFU file.

    ``INFILE`` is the path of the Intel HEX input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the DFU output file.
    Set to ``-`` to write to standard output.

    The output file is written only if the input file is valid.
    """

    in_path = None if infile == '-' else infile
    out_path = None if outfile == '-' else outfile

    try:
        file = build(in_path)
    except ConversionError as exc:
        click.echo(f'ERROR: {exc}', err=True)
        if strict:
            ctx.exit(EXIT_INVALID)
        return
    except OSError:
        click.echo(f'ERROR: unable to open input file {infile}', err=True)
        ctx.exit(EXIT_FAILURE)

    try:
        file.save(out_path)
    except OSError:
        click.echo(f'ERROR: unable to open output file {outfile}', err=True)
        ctx.exit(EXIT_FAILURE)
