from sszgen.errors import NotFoundError

def select_types(package, name = None):
    """Pick the types to generate code for.

    With a name, exactly that type is returned. Otherwise every exported
    struct is returned in lexical name order, which fixes the order of the
    routines in the generated file.
    """
    if name:
        found = package.lookup(name)
        if found is None:
            raise NotFoundError(f'type {name} not found in package {package.name}')
        return [found]

    return sorted((t for t in package.types if t.exported), key = lambda t: t.name)
