class GeneratorError(Exception):
    pass

class ResolutionError(GeneratorError):
    pass

class NoPackageError(ResolutionError):
    pass

class MultiplePackagesError(ResolutionError):
    pass

class DeclarationError(ResolutionError):
    def __init__(self, message, diagnostics = None):
        super().__init__(message)
        self.diagnostics = diagnostics or []

class NotFoundError(GeneratorError):
    pass

class ClassificationError(GeneratorError):
    pass

class UnsupportedShapeError(ClassificationError):
    pass

class CyclicTypeError(ClassificationError):
    def __init__(self, cycle):
        super().__init__('cyclic type reference: ' + ' -> '.join(cycle))
        self.cycle = cycle

class EmissionError(GeneratorError):
    pass
