from sszgen.errors import EmissionError
from sszgen.types import BYTES_PER_LENGTH_OFFSET, TypeIdentity


RUNTIME_MODULE = "sszgen.runtime"

# Value classes and routines of other runs are reached through this alias,
# so struct names never shadow builtins in the generated module.
PACKAGE_ALIAS = "_package"

INTEGER_FORMATS = {1: "B", 2: "H", 4: "I", 8: "Q"}


def snake_case(name: str) -> str:
    if not any(c.isupper() for c in name):
        result = name
    else:
        result = "".join("_" + c.lower() if c.isupper()
                         else c for c in name).lstrip("_")

    return result


def offset_add(base, n):
    if isinstance(base, int):
        return base + n

    if n == 0:
        return base

    return f"{base} + {n}"


def check_routine_names(types):
    seen = {}

    for t in types:
        name = snake_case(t.name)

        if name in seen:
            raise EmissionError(
                f"types {seen[name]} and {t.name} would both use the routine name suffix '{name}'")

        seen[name] = t.name


class SizeCalculator:
    def __init__(self, parent):
        self.parent = parent

    def size_of(self, shape, expr, depth):
        size_class = self.parent.classify(shape)

        if not size_class.dynamic:
            return str(size_class.fixed_size)

        if shape.identity in (TypeIdentity.BYTES, TypeIdentity.BITLIST):
            return f"len({expr})"
        elif shape.identity is TypeIdentity.STRUCT:
            return f"{self.parent.routine('size', shape.name)}({expr})"
        elif shape.identity is TypeIdentity.ARRAY:
            element = self.parent.classify(shape.subtype)

            if not element.dynamic:
                return f"len({expr}) * {element.fixed_size}"

            item = f"e{depth}"
            inner = self.size_of(shape.subtype, item, depth + 1)

            return f"sum({BYTES_PER_LENGTH_OFFSET} + {inner} for {item} in {expr})"
        else:
            raise EmissionError(f"Unexpected variable type {shape.name}")


class Encoder:
    def __init__(self, parent):
        self.parent = parent

    def encode(self, shape, expr, depth):
        if shape.identity is TypeIdentity.INTEGER:
            return f"{self.parent.runtime('encode_uint')}({expr}, {shape.fixed_size})"
        elif shape.identity is TypeIdentity.BOOLEAN:
            return f"{self.parent.runtime('encode_bool')}({expr})"
        elif shape.identity is TypeIdentity.BYTES:
            if shape.n_elements is None:
                return f"bytes({expr})"

            return f"{self.parent.runtime('fixed_bytes')}({expr}, {shape.n_elements})"
        elif shape.identity is TypeIdentity.BITVECTOR:
            return f"{self.parent.runtime('encode_bitvector')}({expr}, {shape.n_bits})"
        elif shape.identity is TypeIdentity.BITLIST:
            limit = f", {shape.n_bits}" if shape.n_bits is not None else ""
            return f"{self.parent.runtime('encode_bitlist')}({expr}{limit})"
        elif shape.identity is TypeIdentity.STRUCT:
            return f"{self.parent.routine('marshal', shape.name)}({expr})"
        elif shape.identity is TypeIdentity.ARRAY:
            items = expr

            if shape.n_elements is not None:
                items = f"{self.parent.runtime('fixed_count')}({expr}, {shape.n_elements})"

            item = f"e{depth}"
            inner = self.encode(shape.subtype, item, depth + 1)

            if self.parent.classify(shape.subtype).dynamic:
                return f"{self.parent.runtime('join_variable')}([{inner} for {item} in {items}])"

            return f'b"".join([{inner} for {item} in {items}])'
        else:
            raise EmissionError(f"Unexpected variable type {shape.name}")


class Decoder:
    def __init__(self, parent):
        self.parent = parent

    def decode_fixed(self, shape, buf, offset, depth):
        size = self.parent.classify(shape).fixed_size
        end = offset_add(offset, size)

        if shape.identity is TypeIdentity.INTEGER:
            if shape.fixed_size in INTEGER_FORMATS:
                self.parent.ctx.use("struct")
                return f'struct.unpack_from("<{INTEGER_FORMATS[shape.fixed_size]}", {buf}, {offset})[0]'

            return f'int.from_bytes({buf}[{offset}:{end}], "little")'
        elif shape.identity is TypeIdentity.BOOLEAN:
            return f"{self.parent.runtime('decode_bool')}({buf}[{offset}])"
        elif shape.identity is TypeIdentity.BYTES:
            return f"bytes({buf}[{offset}:{end}])"
        elif shape.identity is TypeIdentity.BITVECTOR:
            return f"{self.parent.runtime('decode_bitvector')}({buf}[{offset}:{end}], {shape.n_bits})"
        elif shape.identity is TypeIdentity.STRUCT:
            return f"{self.parent.routine('unmarshal', shape.name)}({buf}[{offset}:{end}])"
        elif shape.identity is TypeIdentity.ARRAY:
            element_size = self.parent.classify(shape.subtype).fixed_size
            item = f"i{depth}"
            item_offset = f"{item} * {element_size}" if offset == 0 else f"{offset} + {item} * {element_size}"
            inner = self.decode_fixed(shape.subtype, buf, item_offset, depth + 1)

            return f"[{inner} for {item} in range({shape.n_elements})]"
        else:
            raise EmissionError(f"Unexpected fixed type {shape.name}")

    def decode_dynamic(self, shape, buf, start, end, depth):
        if shape.identity is TypeIdentity.BYTES:
            return f"bytes({buf}[{start}:{end}])"
        elif shape.identity is TypeIdentity.BITLIST:
            limit = f", {shape.n_bits}" if shape.n_bits is not None else ""
            return f"{self.parent.runtime('decode_bitlist')}({buf}[{start}:{end}]{limit})"
        elif shape.identity is TypeIdentity.STRUCT:
            return f"{self.parent.routine('unmarshal', shape.name)}({buf}[{start}:{end}])"
        elif shape.identity is TypeIdentity.ARRAY:
            element = self.parent.classify(shape.subtype)

            if not element.dynamic:
                item = f"i{depth}"
                inner = self.decode_fixed(shape.subtype, buf,
                                          f"{start} + {item} * {element.fixed_size}", depth + 1)
                count = f"{self.parent.runtime('item_count')}({end} - {start}, {element.fixed_size})"

                return f"[{inner} for {item} in range({count})]"

            lo = f"a{depth}"
            hi = f"b{depth}"
            inner = self.decode_dynamic(shape.subtype, buf, lo, hi, depth + 1)
            count = f", {shape.n_elements}" if shape.n_elements is not None else ""

            return f"[{inner} for {lo}, {hi} in {self.parent.runtime('read_offsets')}({buf}, {start}, {end}{count})]"
        else:
            raise EmissionError(f"Unexpected variable type {shape.name}")


class CodeGenerator:
    def __init__(self, ctx, classifier, package, emitted=()):
        self.ctx = ctx
        self.classifier = classifier
        self.package = package
        self.emitted = set(emitted)
        self.indent_level = 0
        self.indent_str = ""

    def indent(self, level=1):
        self.indent_level += level
        self.indent_str = self.indent_level * "    "

        if self.indent_level < 0:
            raise RuntimeError("Indent level cannot be negative")

    def dedent(self):
        self.indent(-1)

    def line(self, text):
        return f"{self.indent_str}{text}\n"

    def lines(self, lines):
        return "".join([self.line(line) for line in lines])

    def classify(self, shape):
        return self.classifier.classify_shape(shape)

    def runtime(self, name):
        return self.ctx.use(RUNTIME_MODULE, name)

    def routine(self, kind, type_name):
        name = f"{kind}_{snake_case(type_name)}"

        # Routines of types emitted in another run come from the package.
        if type_name not in self.emitted:
            return f"{self.package_module()}.{name}"

        return name

    def package_module(self):
        return self.ctx.use(self.package, alias=PACKAGE_ALIAS)

    def generate_size(self, plan):
        out = self.line(f"def {self.routine('size', plan.name)}(obj):")

        self.indent()

        if plan.is_fixed:
            out += self.line(f"return {plan.fixed_size}")
        else:
            sizes = SizeCalculator(self)

            out += self.line(f"size = {plan.fixed_size}")

            for field in plan.dynamic_fields:
                out += self.line(f"# Size of {field.name}")
                out += self.line(
                    f"size += {sizes.size_of(field.type, f'obj.{field.name}', 0)}")

            out += self.line("return size")

        self.dedent()

        return out

    def generate_marshal(self, plan):
        enc = Encoder(self)

        out = self.line(f"def {self.routine('marshal', plan.name)}(obj):")

        self.indent()

        if not plan.is_fixed:
            out += self.line("dyn = [")

            self.indent()

            for field in plan.dynamic_fields:
                out += self.line(f"{enc.encode(field.type, f'obj.{field.name}', 0)},")

            self.dedent()

            out += self.line("]")

        out += self.line("out = bytearray()")

        if not plan.is_fixed:
            out += self.line(f"offset = {plan.fixed_size}")

        for field in plan.fields:
            out += "\n"

            if field.dynamic:
                out += self.line(f"# Offset for {field.name}")
                out += self.line(f"out += {self.runtime('encode_offset')}(offset)")
                out += self.line(f"offset += len(dyn[{field.slot}])")
            else:
                out += self.line(f"# Encode {field.name}")
                out += self.line(f"out += {enc.encode(field.type, f'obj.{field.name}', 0)}")

        if not plan.is_fixed:
            out += "\n"
            out += self.line("for chunk in dyn:")

            self.indent()

            out += self.line("out += chunk")

            self.dedent()

        out += self.line("return bytes(out)")

        self.dedent()

        return out

    def generate_length_checks(self, plan):
        out = ""

        if plan.fixed_size > 0:
            out += self.line(f"if size < {plan.fixed_size}:")

            self.indent()

            out += self.line(
                f"raise {self.runtime('BufferTooShort')}"
                f"(f\"{plan.name}: need at least {plan.fixed_size} bytes, got {{size}}\")")

            self.dedent()

        if plan.is_fixed:
            out += self.line(f"if size > {plan.fixed_size}:")

            self.indent()

            out += self.line(
                f"raise {self.runtime('DecodeOverrun')}"
                f"(f\"{plan.name}: {{size - {plan.fixed_size}}} bytes past the {plan.fixed_size} byte encoding\")")

            self.dedent()

        return out

    def generate_offset_check(self, plan, field):
        slot = f"o{field.slot}"
        invalid = self.runtime("InvalidOffset")

        if field.slot == 0:
            out = self.line(f"if {slot} != {plan.fixed_size}:")

            self.indent()

            out += self.line(
                f"raise {invalid}(f\"{plan.name}.{field.name}: first offset {{{slot}}} "
                f"does not match the {plan.fixed_size} byte fixed region\")")
        else:
            out = self.line(f"if {slot} < o{field.slot - 1} or {slot} > size:")

            self.indent()

            out += self.line(
                f"raise {invalid}(f\"{plan.name}.{field.name}: offset {{{slot}}} "
                f"is out of order or past the end of the buffer\")")

        self.dedent()

        return out

    def generate_unmarshal(self, plan):
        dec = Decoder(self)
        type_name = f"{self.package_module()}.{plan.name}"

        out = self.line(f"def {self.routine('unmarshal', plan.name)}(buf):")

        self.indent()

        out += self.line("buf = memoryview(buf)")
        out += self.line("size = len(buf)")
        out += self.generate_length_checks(plan)

        for field in plan.fields:
            out += "\n"

            if field.dynamic:
                self.ctx.use("struct")

                out += self.line(f"# Offset for {field.name}")
                out += self.line(
                    f'o{field.slot} = struct.unpack_from("<I", buf, {field.offset})[0]')
                out += self.generate_offset_check(plan, field)
            else:
                out += self.line(f"# Decode {field.name}")
                out += self.line(
                    f"v_{field.name} = {dec.decode_fixed(field.type, 'buf', field.offset, 0)}")

        n_dynamic = len(plan.dynamic_fields)

        for field in plan.dynamic_fields:
            end = f"o{field.slot + 1}" if field.slot + 1 < n_dynamic else "size"

            out += "\n"
            out += self.line(f"# Decode {field.name} (dynamic width)")
            out += self.line(
                f"v_{field.name} = {dec.decode_dynamic(field.type, 'buf', f'o{field.slot}', end, 0)}")

        args = ", ".join(f"{field.name}=v_{field.name}" for field in plan.fields)

        out += "\n"
        out += self.line(f"return {type_name}({args})")

        self.dedent()

        return out

    def generate(self, plan):
        out = self.generate_size(plan)
        out += "\n\n"
        out += self.generate_marshal(plan)
        out += "\n\n"
        out += self.generate_unmarshal(plan)

        if self.indent_level != 0:
            raise EmissionError(f"Unbalanced indentation while emitting {plan.name}")

        return out
