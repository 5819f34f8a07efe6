from lark import Lark


# Grammar for .proto source (proto2, proto3 and editions syntax)
grammar = r"""
    start: _statement*

    _statement: syntax_stmt
        | import_stmt
        | package_stmt
        | option_stmt
        | message
        | enum_def
        | service
        | extend
        | ";"

    syntax_stmt: (_SYNTAX | _EDITION) "=" string_value ";"
    import_stmt: _IMPORT IMPORT_MODIFIER? string_value ";"
    package_stmt: _PACKAGE DOTTED_NAME ";"
    option_stmt: _OPTION option_name "=" constant ";"

    option_name: _option_name_part ("." _option_name_part)*
    _option_name_part: IDENT | extension_name
    extension_name: "(" DOTTED_NAME ")"

    message: _MESSAGE IDENT message_body
    message_body: "{" _message_element* "}"
    _message_element: field
        | map_field
        | oneof
        | message
        | enum_def
        | extend
        | extensions_stmt
        | reserved_stmt
        | option_stmt
        | ";"

    field: FIELD_LABEL? TYPE_NAME IDENT "=" INT_LIT field_options? ";"
    map_field: _MAP "<" TYPE_NAME "," TYPE_NAME ">" IDENT "=" INT_LIT field_options? ";"
    field_options: "[" field_option ("," field_option)* "]"
    field_option: option_name "=" constant

    oneof: _ONEOF IDENT "{" _oneof_element* "}"
    _oneof_element: field | option_stmt | ";"

    enum_def: _ENUM IDENT enum_body
    enum_body: "{" _enum_element* "}"
    _enum_element: enum_value | option_stmt | reserved_stmt | ";"
    enum_value: IDENT "=" SIGNED_INT field_options? ";"

    service: _SERVICE IDENT "{" _service_element* "}"
    _service_element: rpc | option_stmt | ";"
    rpc: _RPC IDENT "(" rpc_request ")" _RETURNS "(" rpc_response ")" (rpc_body | ";")
    rpc_request: STREAM? TYPE_NAME
    rpc_response: STREAM? TYPE_NAME
    rpc_body: "{" (option_stmt | ";")* "}"

    extend: _EXTEND TYPE_NAME "{" (field | ";")* "}"
    extensions_stmt: _EXTENSIONS _ranges field_options? ";"
    reserved_stmt: _RESERVED (_ranges | _reserved_names) ";"
    _ranges: range ("," range)*
    range: INT_LIT (_TO (INT_LIT | _MAX))?
    _reserved_names: string_value ("," string_value)*
        | IDENT ("," IDENT)*

    constant: DOTTED_NAME              -> ident_constant
        | "-" DOTTED_NAME              -> ident_constant
        | SIGNED_NUMBER                -> number_constant
        | string_value
        | aggregate

    aggregate: "{" agg_entry* "}"
    agg_entry: agg_key ":"? agg_value (";" | ",")?
    agg_key: IDENT | "[" DOTTED_NAME ("/" DOTTED_NAME)? "]"
    agg_value: constant | agg_list
    agg_list: "[" (agg_value ("," agg_value)*)? "]"

    string_value: STRING+

    _SYNTAX: /syntax\b/
    _EDITION: /edition\b/
    _IMPORT: /import\b/
    IMPORT_MODIFIER: /(public|weak)\b/
    _PACKAGE: /package\b/
    _OPTION: /option\b/
    _MESSAGE: /message\b/
    _ENUM: /enum\b/
    _SERVICE: /service\b/
    _RPC: /rpc\b/
    _RETURNS: /returns\b/
    STREAM: /stream\b/
    _ONEOF: /oneof\b/
    _MAP: /map\b/
    _EXTEND: /extend\b/
    _EXTENSIONS: /extensions\b/
    _RESERVED: /reserved\b/
    _TO: /to\b/
    _MAX: /max\b/
    FIELD_LABEL: /(optional|required|repeated)\b/

    // Field and method types may not be a bare keyword, otherwise
    // "option foo = 1;" would also read as a field of type "option".
    TYPE_NAME: /(?!(option|optional|required|repeated|message|enum|oneof|map|reserved|extensions|extend|group)\b)\.?[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*/
    DOTTED_NAME: /\.?[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*/
    IDENT: /[A-Za-z_][A-Za-z0-9_]*/
    INT_LIT: /0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*/
    SIGNED_INT: /-?(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)/
    SIGNED_NUMBER: /[-+]?(0[xX][0-9a-fA-F]+|([0-9]+\.?[0-9]*|\.[0-9]+)([eE][-+]?[0-9]+)?)/
    STRING: /"(\\.|[^"\\\n])*"|'(\\.|[^'\\\n])*'/

    LINE_COMMENT: /\/\/[^\n]*/
    BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

    %import common.WS
    %ignore WS
    %ignore LINE_COMMENT
    %ignore BLOCK_COMMENT
"""

parser = Lark(
    grammar,
    start='start',
    propagate_positions=True
)


def parse_proto(text):
    """
    Parse .proto source text into a lark tree.
    Raises lark.exceptions.UnexpectedInput (or a subclass) on malformed syntax.
    """
    return parser.parse(text)
