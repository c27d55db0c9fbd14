import logging
from dataclasses import dataclass, field
from typing import Optional

from tree_sitter import Language, Node, Parser, Tree

from hookfinder.src.hookfinder.errors import LanguageLoadError
from hookfinder.src.hookfinder.models.ast_models import ClassInfo, MethodCall, MethodInfo
from hookfinder.src.hookfinder.tree_sitter_helpers import (
    named_children,
    node_point,
    node_text,
    string_literal_value,
)

logger = logging.getLogger(__name__)

PRIMITIVE_TYPES = frozenset({"boolean", "byte", "char", "short", "int", "long", "float", "double", "void"})
JAVA_LANG_TYPES = frozenset({
    "Boolean", "Byte", "Character", "CharSequence", "Class", "Double", "Enum", "Exception",
    "Float", "Integer", "Iterable", "Long", "Math", "Number", "Object", "Runnable",
    "RuntimeException", "Short", "String", "StringBuilder", "System", "Thread", "Throwable", "Void",
})
TYPE_DECLARATIONS = {
    "class_declaration": "class",
    "interface_declaration": "interface",
    "enum_declaration": "enum",
    "record_declaration": "class",
}
FIELD_DECLARATIONS = ("field_declaration", "constant_declaration")
# Anonymous and local classes compile to their own types; their bodies are not part of the method.
SKIPPED_IN_BODY = ("class_body", "class_declaration", "interface_declaration", "enum_declaration")


# --- Tree-sitter language loading -------------------------------------------

def load_java_language() -> Language:
    """
    Loads the Tree-sitter Java grammar shipped by the `tree-sitter-java` wheel.
    """
    try:
        import tree_sitter_java
    except ImportError as e:
        raise LanguageLoadError(
            "Could not load Java grammar.\n"
            "- Install `tree-sitter-java` (pip install tree-sitter-java)."
        ) from e
    return Language(tree_sitter_java.language())


# --- Per-file naming context -------------------------------------------------

@dataclass
class FileContext:
    """What a simple type name can refer to inside one compilation unit."""
    package: Optional[str]
    imports: dict[str, str] = field(default_factory=dict)  # simple name -> FQCN

    def qualify(self, type_text: Optional[str]) -> Optional[str]:
        """
        Turns a source type into the name a bytecode index would report:
        generics erased, imports and java.lang applied, everything else
        assumed to live in the file's own package.
        """
        if type_text is None:
            return None
        text = type_text.strip()
        dims = ""
        while text.endswith("[]"):
            dims += "[]"
            text = text[:-2].rstrip()
        base = text.split("<", 1)[0].strip()

        if base in PRIMITIVE_TYPES:
            return base + dims
        if "." in base:
            head, rest = base.split(".", 1)
            if head in self.imports:
                return f"{self.imports[head]}.{rest}{dims}"
            return base + dims
        if base in self.imports:
            return self.imports[base] + dims
        if base in JAVA_LANG_TYPES:
            return f"java.lang.{base}{dims}"
        if self.package:
            return f"{self.package}.{base}{dims}"
        return base + dims


# --- The Indexer -------------------------------------------------------------

class JavaIndexer:
    """
    Walks a Tree-sitter Java AST (typically jadx output of the target APK) to
    build the index the source query service answers from:
    packages -> classes -> methods -> (calls, string literals, typed locals).
    """

    def __init__(self, language: Optional[Language] = None):
        self.language = language or load_java_language()
        self.parser = Parser(self.language)

        # In-memory index, insertion order is enumeration order
        self.packages: set[str] = set()
        self.classes: dict[str, ClassInfo] = {}  # fqcn -> ClassInfo

    def parse(self, source: str) -> Tree:
        """
        Parses a single source string into a Tree-sitter tree.
        """
        return self.parser.parse(source.encode("utf-8"))

    def index_source(self, source: str, file_path: Optional[str] = None):
        """
        Parses & indexes a Java source file.
        """
        source_bytes = source.encode("utf-8")
        tree: Tree = self.parse(source)
        root: Node = tree.root_node
        if root.has_error:
            logger.debug("Syntax errors in %s, indexing what parsed", file_path or "<source>")

        ctx = FileContext(package=self._find_package(source_bytes, root),
                          imports=self._find_imports(source_bytes, root))
        if ctx.package:
            self.packages.add(ctx.package)

        # DFS over the AST. We maintain a stack of nested class names to support inner classes.
        class_stack: list[str] = []
        self._walk_and_index(source_bytes, root, ctx, class_stack)

    @property
    def method_count(self) -> int:
        return sum(len(ci.methods) for ci in self.classes.values())

    # -- AST helpers ----------------------------------------------------------

    def _find_package(self, source_bytes: bytes, root: Node) -> Optional[str]:
        for child in root.children:
            if child.type == "package_declaration":
                for name_node in named_children(child):
                    if name_node.type in ("scoped_identifier", "identifier"):
                        return node_text(source_bytes, name_node)
        return None

    def _find_imports(self, source_bytes: bytes, root: Node) -> dict[str, str]:
        """Single-type imports only; static and wildcard imports name no type we can use."""
        imports: dict[str, str] = {}
        for child in root.children:
            if child.type != "import_declaration":
                continue
            if any(c.type in ("static", "asterisk") for c in child.children):
                continue
            for name_node in named_children(child):
                if name_node.type in ("scoped_identifier", "identifier"):
                    fqcn = node_text(source_bytes, name_node)
                    imports[fqcn.rsplit(".", 1)[-1]] = fqcn
                    break
        return imports

    def _walk_and_index(self, source_bytes: bytes, node: Node, ctx: FileContext, class_stack: list[str]):
        """
        Generic DFS that watches for type, field and method declarations.
        """
        if node.type in TYPE_DECLARATIONS:
            class_name_node = node.child_by_field_name("name")
            if class_name_node is not None:
                simple = node_text(source_bytes, class_name_node)
                line, col = node_point(node)
                class_stack.append(simple)

                # Nested classes are joined with '.', matching how the targets are named
                fqcn = self._fqcn(ctx.package, class_stack)
                if fqcn not in self.classes:
                    self.classes[fqcn] = ClassInfo(
                        simple_name=simple,
                        fqcn=fqcn,
                        kind=TYPE_DECLARATIONS[node.type],
                        line=line,
                        col=col,
                    )

                for child in node.children:
                    self._walk_and_index(source_bytes, child, ctx, class_stack)

                class_stack.pop()
                return

        if class_stack and node.type in FIELD_DECLARATIONS:
            self._index_fields(source_bytes, node, ctx, class_stack)
            return

        if node.type in ("method_declaration", "constructor_declaration"):
            self._index_method(source_bytes, node, ctx, class_stack)
            return

        for child in node.children:
            self._walk_and_index(source_bytes, child, ctx, class_stack)

    def _fqcn(self, pkg: Optional[str], class_names: list[str]) -> str:
        """Builds a fully-qualified class name from package + nested classes."""
        left = pkg + "." if pkg else ""
        return left + ".".join(class_names)

    def _index_fields(self, source_bytes: bytes, node: Node, ctx: FileContext, class_stack: list[str]):
        cls = self.classes[self._fqcn(ctx.package, class_stack)]
        type_node = node.child_by_field_name("type")
        field_type = ctx.qualify(node_text(source_bytes, type_node)) if type_node else None
        if field_type is None:
            return
        for declarator in node.children_by_field_name("declarator"):
            name_node = declarator.child_by_field_name("name")
            if name_node is not None:
                cls.fields[node_text(source_bytes, name_node)] = field_type

    def _index_method(self, source_bytes: bytes, node: Node, ctx: FileContext, class_stack: list[str]):
        """
        Pulls out a method's name, qualified parameter and return types, and
        then walks its body for calls, string literals and typed locals.
        """
        if not class_stack:
            return
        fqcn = self._fqcn(ctx.package, class_stack)

        if node.type == "constructor_declaration":
            method_name = "<init>"
            return_type = None
        else:
            name_node = node.child_by_field_name("name")
            method_name = node_text(source_bytes, name_node) if name_node else "<anonymous>"
            ret_node = node.child_by_field_name("type")
            return_type = ctx.qualify(node_text(source_bytes, ret_node)) if ret_node else None

        param_types: list[str] = []
        param_names: list[str] = []
        params_node = node.child_by_field_name("parameters")
        if params_node is not None:
            for p in named_children(params_node):
                p_type, p_name = self._parameter(source_bytes, p, ctx)
                if p_type is not None:
                    param_types.append(p_type)
                    param_names.append(p_name)

        line, col = node_point(node)
        method_info = MethodInfo(
            name=method_name,
            param_types=param_types,
            param_names=param_names,
            return_type=return_type,
            line=line,
            col=col,
            locals=dict(zip(param_names, param_types)),
        )

        body = node.child_by_field_name("body")
        if body is not None:
            self._collect_body(source_bytes, body, ctx, method_info)

        self.classes[fqcn].methods.append(method_info)

    def _parameter(self, source_bytes: bytes, p: Node, ctx: FileContext) -> tuple[Optional[str], str]:
        if p.type == "formal_parameter":
            type_node = p.child_by_field_name("type")
            name_node = p.child_by_field_name("name")
            p_type = ctx.qualify(node_text(source_bytes, type_node)) if type_node else "?"
            return p_type, node_text(source_bytes, name_node) if name_node else "param"
        if p.type == "spread_parameter":
            # `String... names` is an array at the bytecode level
            parts = [c for c in named_children(p) if c.type != "modifiers"]
            if not parts:
                return None, ""
            p_type = ctx.qualify(node_text(source_bytes, parts[0])) + "[]"
            name_node = parts[-1].child_by_field_name("name") if parts[-1].type == "variable_declarator" else None
            return p_type, node_text(source_bytes, name_node) if name_node else "param"
        return None, ""

    def _collect_body(self, source_bytes: bytes, body: Node, ctx: FileContext, method_info: MethodInfo):
        """
        Post-order walk of a method body. Calls are recorded in evaluation
        order (arguments and receivers before the call that consumes them),
        the same order the compiled invoke instructions appear in.

        Note: this is syntax-only. Receivers are typed later from the
        locals/fields captured here; nothing is resolved against a classpath.
        """
        stack: list[tuple[Node, bool]] = [(body, False)]
        while stack:
            node, expanded = stack.pop()
            if not expanded:
                if node.type in SKIPPED_IN_BODY:
                    continue
                stack.append((node, True))
                # reversed so the leftmost child is expanded first
                for child in reversed(node.children):
                    stack.append((child, False))
                continue

            if node.type == "method_invocation":
                name_node = node.child_by_field_name("name")
                obj_node = node.child_by_field_name("object")
                args_node = node.child_by_field_name("arguments")
                line, col = node_point(node)
                method_info.calls.append(MethodCall(
                    name=node_text(source_bytes, name_node) if name_node else "<unknown>",
                    receiver=node_text(source_bytes, obj_node) if obj_node else None,
                    arg_count=len(named_children(args_node)) if args_node else 0,
                    line=line,
                    col=col,
                ))
            elif node.type == "object_creation_expression":
                # `new Foo(bar)` -> call to Foo.<init>, receiver carries the qualified type
                type_node = node.child_by_field_name("type")
                args_node = node.child_by_field_name("arguments")
                line, col = node_point(node)
                method_info.calls.append(MethodCall(
                    name="<init>",
                    receiver=ctx.qualify(node_text(source_bytes, type_node)) if type_node else None,
                    arg_count=len(named_children(args_node)) if args_node else 0,
                    line=line,
                    col=col,
                ))
            elif node.type == "string_literal":
                method_info.strings.append(string_literal_value(source_bytes, node))
            elif node.type == "local_variable_declaration":
                self._record_locals(source_bytes, node, ctx, method_info)
            elif node.type == "enhanced_for_statement":
                type_node = node.child_by_field_name("type")
                name_node = node.child_by_field_name("name")
                if type_node is not None and name_node is not None:
                    method_info.locals[node_text(source_bytes, name_node)] = ctx.qualify(
                        node_text(source_bytes, type_node))

    def _record_locals(self, source_bytes: bytes, node: Node, ctx: FileContext, method_info: MethodInfo):
        type_node = node.child_by_field_name("type")
        if type_node is None:
            return
        type_text = node_text(source_bytes, type_node)
        if type_text == "var":
            return
        local_type = ctx.qualify(type_text)
        for declarator in node.children_by_field_name("declarator"):
            name_node = declarator.child_by_field_name("name")
            if name_node is not None:
                method_info.locals[node_text(source_bytes, name_node)] = local_type
