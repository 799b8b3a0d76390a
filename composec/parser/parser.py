# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import codecs
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Tree

from .ast import (
	AssocAssign,
	AssocDecl,
	Attribute,
	ComponentDef,
	Composition,
	ConfigTrait,
	Entry,
	EntryPoint,
	ImplDef,
	InterfaceDef,
	Located,
	Param,
	Part,
	PathExpr,
	Program,
	Reexport,
	StorageDecl,
	StructDef,
	TypeRef,
	WherePair,
)

_GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")
_GRAMMAR_SRC = _GRAMMAR_PATH.read_text()


_PARSER = Lark(
	_GRAMMAR_SRC,
	parser="lalr",
	start="start",
	propagate_positions=True,
	maybe_placeholders=False,
)


class DeclarationError(ValueError):
	"""
	User-facing error found while building the AST of a well-formed parse
	tree (duplicate parameter names, malformed attribute strings).

	The parser adapter converts this into a parser-phase diagnostic.
	"""

	def __init__(self, message: str, *, loc: Located | None) -> None:
		super().__init__(message)
		self.loc = loc


def parse_program(source: str) -> Program:
	tree = _PARSER.parse(source)
	return _build_program(tree)


def _decode_string_token(tok: Token) -> str:
	"""
	Decode STRING tokens. Python-style escapes are interpreted first, then the
	code points are reinterpreted as latin-1 bytes and decoded as UTF-8 so
	escaped byte sequences survive.
	"""
	content = tok.value[1:-1]
	try:
		unescaped = codecs.decode(content, "unicode_escape")
		return unescaped.encode("latin-1").decode("utf-8")
	except (UnicodeDecodeError, UnicodeEncodeError) as err:
		raise DeclarationError(f"invalid string literal: {err.reason}", loc=_loc_from_token(tok)) from None


def _build_program(tree: Tree) -> Program:
	prog = Program()
	for child in tree.children:
		if not isinstance(child, Tree):
			continue
		kind = _name(child)
		if kind == "interface_def":
			prog.interfaces.append(_build_interface_def(child))
		elif kind == "struct_def":
			prog.structs.append(_build_struct_def(child))
		elif kind == "impl_def":
			prog.impls.append(_build_impl_def(child))
		elif kind == "component_def":
			prog.components.append(_build_component_def(child))
		elif kind == "composition":
			prog.compositions.append(_build_composition(child))
	return prog


def _build_path(tree: Tree) -> PathExpr:
	names = _tokens(tree, "NAME")
	return PathExpr(segments=[t.value for t in names], loc=_loc(tree))


def _build_type_ref(tree: Tree) -> TypeRef:
	path = _build_path(_subtree(tree, "path"))
	args: List[TypeRef] = []
	args_node = _subtree(tree, "type_args")
	if args_node is not None:
		args = [_build_type_ref(t) for t in _subtrees(args_node, "type_ref")]
	return TypeRef(path=path, args=args, loc=_loc(tree))


def _build_bounds(tree: Optional[Tree]) -> List[PathExpr]:
	"""Paths of a `bounds` (`: A + B`) or `alias` (`= A + B`) node."""
	if tree is None:
		return []
	bound_list = _subtree(tree, "bound_list")
	return [_build_path(p) for p in _subtrees(bound_list, "path")]


def _build_attrs(tree: Tree) -> List[Attribute]:
	attrs_node = _subtree(tree, "attrs")
	if attrs_node is None:
		return []
	return [_build_attribute(a) for a in _subtrees(attrs_node, "attribute")]


def _build_attribute(tree: Tree) -> Attribute:
	name_tok = _tokens(tree, "NAME")[0]
	attr = Attribute(name=name_tok.value, loc=_loc(tree))
	args_node = _subtree(tree, "attr_args")
	if args_node is None:
		return attr
	for arg in args_node.children:
		if not isinstance(arg, Tree):
			continue
		kind = _name(arg)
		if kind == "attr_str":
			attr.args.append(_decode_string_token(_tokens(arg, "STRING")[0]))
		elif kind == "attr_kw":
			key = _tokens(arg, "NAME")[0].value
			attr.kwargs[key] = _decode_string_token(_tokens(arg, "STRING")[0])
		elif kind == "attr_path":
			attr.paths.append(_build_path(_subtree(arg, "path")))
	return attr


def _build_interface_def(tree: Tree) -> InterfaceDef:
	return InterfaceDef(
		path=_build_path(_subtree(tree, "path")),
		supertraits=_build_bounds(_subtree(tree, "bounds")),
		attrs=_build_attrs(tree),
		loc=_loc(tree),
		alias=_build_bounds(_subtree(tree, "alias")),
	)


def _build_struct_def(tree: Tree) -> StructDef:
	name_tok = _tokens(tree, "NAME")[0]
	params: List[str] = []
	gp = _subtree(tree, "generic_params")
	if gp is not None:
		params = [t.value for t in _tokens(gp, "NAME")]
	return StructDef(name=name_tok.value, params=params, attrs=_build_attrs(tree), loc=_loc(tree))


def _build_impl_def(tree: Tree) -> ImplDef:
	target_tok = _tokens(tree, "NAME")[0]
	assigns: List[AssocAssign] = []
	for node in _subtrees(tree, "assoc_assign"):
		name_tok = _tokens(node, "NAME")[0]
		assigns.append(
			AssocAssign(
				name=name_tok.value,
				value=_build_type_ref(_subtree(node, "type_ref")),
				loc=_loc(node),
				name_loc=_loc_from_token(name_tok),
			)
		)
	return ImplDef(
		trait=_build_path(_subtree(tree, "path")),
		target=target_tok.value,
		assigns=assigns,
		loc=_loc(tree),
		target_loc=_loc_from_token(target_tok),
	)


def _build_part(tree: Tree) -> Part:
	name_tok = _tokens(tree, "NAME")[0]
	generics: List[str] = []
	gen = _subtree(tree, "part_generics")
	if gen is not None:
		generics = [t.value for t in _tokens(gen, "NAME")]
	return Part(name=name_tok.value, generics=generics, loc=_loc(tree))


def _build_assoc_decl(tree: Tree) -> AssocDecl:
	name_tok = _tokens(tree, "NAME")[0]
	bounds_node = _subtree(tree, "bounds")
	if bounds_node is not None:
		end_line, end_col = bounds_node.meta.end_line, bounds_node.meta.end_column
	else:
		end_line, end_col = name_tok.end_line, name_tok.end_column
	return AssocDecl(
		name=name_tok.value,
		bounds=_build_bounds(bounds_node),
		loc=_loc(tree),
		name_loc=_loc_from_token(name_tok),
		bounds_end=Located(line=end_line, column=end_col, end_line=end_line, end_column=end_col),
	)


def _build_config_trait(tree: Tree) -> ConfigTrait:
	name_tok = _tokens(tree, "NAME")[0]
	return ConfigTrait(
		name=name_tok.value,
		supertraits=_build_bounds(_subtree(tree, "bounds")),
		assoc=[_build_assoc_decl(a) for a in _subtrees(tree, "assoc_decl")],
		loc=_loc(tree),
	)


def _build_entry_point(tree: Tree) -> EntryPoint:
	name_tok = _tokens(tree, "NAME")[0]
	params: List[Param] = []
	for node in _subtrees(tree, "param"):
		pname = _tokens(node, "NAME")[0]
		if any(p.name == pname.value for p in params):
			raise DeclarationError(
				f"identifier `{pname.value}` is bound more than once in the parameter list of `{name_tok.value}`",
				loc=_loc_from_token(pname),
			)
		params.append(Param(name=pname.value, type_ref=_build_type_ref(_subtree(node, "type_ref")), loc=_loc(node)))
	return EntryPoint(name=name_tok.value, params=params, loc=_loc(tree))


def _build_component_def(tree: Tree) -> ComponentDef:
	comp = ComponentDef(
		path=_build_path(_subtree(tree, "path")),
		parts=[],
		configs=[],
		storages=[],
		calls=[],
		reexports=[],
		loc=_loc(tree),
	)
	for item in tree.children:
		if not isinstance(item, Tree):
			continue
		kind = _name(item)
		if kind == "parts_decl":
			comp.parts.extend(_build_part(p) for p in _subtrees(item, "part"))
		elif kind == "config_trait":
			comp.configs.append(_build_config_trait(item))
		elif kind == "storage_decl":
			names = _tokens(item, "NAME")
			comp.storages.append(StorageDecl(prefix=names[0].value, items=[t.value for t in names[1:]], loc=_loc(item)))
		elif kind == "call_block":
			comp.calls.extend(_build_entry_point(e) for e in _subtrees(item, "entry_point"))
		elif kind == "reexport":
			comp.reexports.append(Reexport(path=_build_path(_subtree(item, "path")), loc=_loc(item)))
	return comp


def _build_entry(tree: Tree) -> Entry:
	name_tok = _tokens(tree, "NAME")[0]
	path_node = _subtree(tree, "entry_path")
	seg_toks = _tokens(path_node, "NAME")
	# The path span covers the segments only, not the trailing `::`.
	path_loc = Located(
		line=seg_toks[0].line,
		column=seg_toks[0].column,
		end_line=seg_toks[-1].end_line,
		end_column=seg_toks[-1].end_column,
	)
	index: Optional[int] = None
	index_loc: Optional[Located] = None
	index_node = _subtree(tree, "entry_index")
	if index_node is not None:
		index_tok = _tokens(index_node, "INT")[0]
		index = int(index_tok.value)
		index_loc = _loc_from_token(index_tok)
	return Entry(
		name=name_tok.value,
		path=PathExpr(segments=[t.value for t in seg_toks], loc=path_loc),
		parts=[_build_part(p) for p in _subtrees(tree, "part")],
		index=index,
		loc=_loc(tree),
		name_loc=_loc_from_token(name_tok),
		index_loc=index_loc,
	)


def _build_composition(tree: Tree) -> Composition:
	names = _tokens(tree, "NAME")
	macro_tok, runtime_tok = names[0], names[1]
	where: List[WherePair] = []
	where_node = _subtree(tree, "where_clause")
	if where_node is not None:
		for pair in _subtrees(where_node, "where_pair"):
			where.append(
				WherePair(
					name=_tokens(pair, "NAME")[0].value,
					value=_build_type_ref(_subtree(pair, "type_ref")),
					loc=_loc(pair),
				)
			)
	return Composition(
		macro=macro_tok.value,
		runtime=runtime_tok.value,
		where=where,
		entries=[_build_entry(e) for e in _subtrees(tree, "entry")],
		loc=_loc(tree),
		macro_loc=_loc_from_token(macro_tok),
		runtime_loc=_loc_from_token(runtime_tok),
	)


def _tokens(tree: Tree, type_: str) -> List[Token]:
	return [c for c in tree.children if isinstance(c, Token) and c.type == type_]


def _subtrees(tree: Tree, name: str) -> List[Tree]:
	return [c for c in tree.children if isinstance(c, Tree) and _name(c) == name]


def _subtree(tree: Tree, name: str) -> Optional[Tree]:
	return next((c for c in tree.children if isinstance(c, Tree) and _name(c) == name), None)


def _loc(tree: Tree) -> Located:
	meta = tree.meta
	return Located(line=meta.line, column=meta.column, end_line=meta.end_line, end_column=meta.end_column)


def _loc_from_token(token: Token) -> Located:
	return Located(line=token.line, column=token.column, end_line=token.end_line, end_column=token.end_column)


def _name(node: Tree | Token) -> str:
	if isinstance(node, Tree):
		data = node.data
		if isinstance(data, Token):
			return data.value
		return data
	if isinstance(node, Token):
		return node.type
	return str(node)


__all__ = ["parse_program", "DeclarationError"]
