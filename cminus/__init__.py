"""C-minus compiler: tree-sitter parse tree -> AST -> stack-machine assembly."""

from .api import (  # noqa: F401
    parse_source,
    build_ast,
    compile_source,
    dump_ast,
    dump_assembly,
    compile_file,
    run_source,
    instruction_stats,
)
