#!/usr/bin/env python3

import argparse
import logging
import os
import sys

from sszgen.errors import GeneratorError
from sszgen.process import Config
from sszgen.resolver import DEFAULT_TAGS

parser = argparse.ArgumentParser(prog = 'sszgen', description = 'SSZ encoding code generator for schema packages')
parser.add_argument('-d', '--dir', help = 'input package directory', type = str, default = '.')
parser.add_argument('-o', '--out', help = 'output file (default is stdout)', type = str, default = '-')
parser.add_argument('-t', '--type', help = 'type to generate methods for', type = str, default = None)
parser.add_argument('--tags', help = 'comma separated build tags', type = str, default = ','.join(DEFAULT_TAGS))
parser.add_argument('-v', '--verbose', help = 'print debug output', action = 'store_true')

def fatal(*args):
	print(*args, file = sys.stderr)
	sys.exit(1)

def write_output(path, code):
	if path == '-':
		sys.stdout.write(code)
		return

	fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
	with os.fdopen(fd, 'w') as o:
		o.write(code)

def main(argv = None):
	args = parser.parse_args(argv)

	logging.basicConfig(level = logging.DEBUG if args.verbose else logging.WARNING,
			format = 'sszgen: %(levelname)s: %(message)s')

	tags = tuple(t for t in args.tags.split(',') if t)
	cfg = Config(dir = args.dir, type = args.type, tags = tags)

	try:
		code = cfg.process()
		write_output(args.out, code)
	except GeneratorError as e:
		fatal(e)
	except OSError as e:
		fatal(e)
