import logging

import black
from black.parsing import InvalidInput

from sszgen.classifier import Classifier
from sszgen.context import GenerationContext
from sszgen.plan import synthesize
from sszgen.python_generator import CodeGenerator, check_routine_names
from sszgen.resolver import DEFAULT_TAGS, load_package
from sszgen.selector import select_types

logger = logging.getLogger(__name__)

GENERATED_MARKER = '# Code generated by sszgen. DO NOT EDIT.\n'
BUILD_GUARD = '# sszgen:build !nosszgen\n'

class Config:
    def __init__(self, dir = '.', type = None, tags = DEFAULT_TAGS):
        self.dir = dir
        self.type = type
        self.tags = tags

    def process(self):
        package = load_package(self.dir, self.tags)
        types = select_types(package, self.type)

        classifier = Classifier(package.types)
        sizes = classifier.classify_all(types)
        logger.debug('size classes: %r', sizes)

        check_routine_names(package.types)

        ctx = GenerationContext(package.name)
        generator = CodeGenerator(ctx, classifier, package.name,
                emitted = [t.name for t in types])

        chunks = []
        for t in types:
            plan = synthesize(t, classifier)
            logger.debug('%r', plan)
            chunks.append(generator.generate(plan))

        code = assemble(ctx.header(), chunks)
        code = format_source(code)

        # Added after formatting so the guard stays on its own lines.
        return annotate(code)

def assemble(header, chunks):
    return header + '\n\n' + '\n\n'.join(chunks)

def format_source(code):
    try:
        return black.format_str(code, mode = black.Mode())
    except InvalidInput as e:
        logger.warning('emitting unformatted code: %s', e)
        return code

def annotate(code):
    return GENERATED_MARKER + '\n' + BUILD_GUARD + '\n' + code
