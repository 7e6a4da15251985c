class GenerationContext:
    """Collects the names the emitted routines refer to.

    One context is shared by every type emitted in a run and rendered once,
    after the last type, into the module header.
    """

    def __init__(self, package):
        self.package = package
        self.modules = {}
        self.names = {}
        self.rendered = None

    def use(self, module, name = None, alias = None):
        if self.rendered is not None:
            raise RuntimeError('generation context was already rendered')

        if name is None:
            self.modules[module] = alias
            return alias or module

        self.names.setdefault(module, set()).add(name)
        return name

    def header(self):
        if self.rendered is not None:
            return self.rendered

        out = f'"""Encoding routines for package {self.package}."""\n\n'

        for module in sorted(self.modules):
            alias = self.modules[module]
            out += f'import {module} as {alias}\n' if alias else f'import {module}\n'

        if self.modules and self.names:
            out += '\n'

        for module in sorted(self.names):
            out += f'from {module} import {", ".join(sorted(self.names[module]))}\n'

        self.rendered = out
        return out
