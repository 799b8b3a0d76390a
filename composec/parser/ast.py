from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Located:
    line: int
    column: int
    end_line: Optional[int] = None
    end_column: Optional[int] = None


@dataclass
class PathExpr:
    segments: List[str]
    loc: Located

    @property
    def text(self) -> str:
        return "::".join(self.segments)

    @property
    def last(self) -> str:
        return self.segments[-1]


@dataclass
class TypeRef:
    path: PathExpr
    args: List["TypeRef"] = field(default_factory=list)
    loc: Optional[Located] = None

    @property
    def text(self) -> str:
        if not self.args:
            return self.path.text
        return f"{self.path.text}<{', '.join(a.text for a in self.args)}>"


@dataclass
class Attribute:
    name: str
    args: List[str] = field(default_factory=list)
    kwargs: Dict[str, str] = field(default_factory=dict)
    paths: List[PathExpr] = field(default_factory=list)
    loc: Optional[Located] = None


@dataclass
class InterfaceDef:
    path: PathExpr
    supertraits: List[PathExpr]
    attrs: List[Attribute]
    loc: Located
    # `interface X = A + B;` is implemented by every type implementing A and B.
    alias: List[PathExpr] = field(default_factory=list)


@dataclass
class StructDef:
    name: str
    params: List[str]
    attrs: List[Attribute]
    loc: Located


@dataclass
class AssocAssign:
    name: str
    value: TypeRef
    loc: Located
    name_loc: Located


@dataclass
class ImplDef:
    trait: PathExpr
    target: str
    assigns: List[AssocAssign]
    loc: Located
    target_loc: Located


@dataclass
class Part:
    name: str
    generics: List[str]
    loc: Located


@dataclass
class AssocDecl:
    name: str
    bounds: List[PathExpr]
    loc: Located
    name_loc: Located
    # Location just before the terminating `;` (end of name or bound list).
    bounds_end: Located


@dataclass
class ConfigTrait:
    name: str
    supertraits: List[PathExpr]
    assoc: List[AssocDecl]
    loc: Located


@dataclass
class StorageDecl:
    prefix: str
    items: List[str]
    loc: Located


@dataclass
class Param:
    name: str
    type_ref: TypeRef
    loc: Located


@dataclass
class EntryPoint:
    name: str
    params: List[Param]
    loc: Located


@dataclass
class Reexport:
    path: PathExpr
    loc: Located


@dataclass
class ComponentDef:
    path: PathExpr
    # Every `parts { ... }` token in declaration order (duplicates included;
    # the parser adapter reports them).
    parts: List[Part]
    configs: List[ConfigTrait]
    storages: List[StorageDecl]
    calls: List[EntryPoint]
    reexports: List[Reexport]
    loc: Located


@dataclass
class WherePair:
    name: str
    value: TypeRef
    loc: Located


@dataclass
class Entry:
    name: str
    path: PathExpr
    parts: List[Part]
    index: Optional[int]
    loc: Located
    name_loc: Located
    index_loc: Optional[Located] = None


@dataclass
class Composition:
    macro: str
    runtime: str
    where: List[WherePair]
    entries: List[Entry]
    loc: Located
    macro_loc: Located
    runtime_loc: Located


@dataclass
class Program:
    interfaces: List[InterfaceDef] = field(default_factory=list)
    structs: List[StructDef] = field(default_factory=list)
    impls: List[ImplDef] = field(default_factory=list)
    components: List[ComponentDef] = field(default_factory=list)
    compositions: List[Composition] = field(default_factory=list)
