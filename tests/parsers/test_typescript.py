import textwrap

import pytest

from archlens.config import merge_config
from archlens.exceptions import ParseError
from archlens.models import Role
from archlens.parsers import ParserRegistry, TypeScriptParser
from archlens.parsers.typescript import parse_import_clause
from archlens.resolver import ImportResolver


def parse(source, path="src/lib/module.ts", resolver=None, parser=None):
    parser = parser or TypeScriptParser()
    return parser.parse(textwrap.dedent(source).lstrip("\n"), path, resolver)


class TestImports:
    def test_import_forms(self):
        result = parse("""
            import React, { useState, type FC } from 'react'
            import * as utils from './utils'
            import type { User } from '@/types'
            import './styles.css'
            export { helper } from './helper'
            export * from './all'
            const Lazy = import('./lazy')
        """)
        by_source = {imp.source: imp for imp in result.imports}

        assert by_source["react"].specifiers == ("React", "useState", "FC")
        assert by_source["./utils"].specifiers == ("* as utils",)
        assert by_source["@/types"].is_type_only is True
        assert by_source["./styles.css"].kind == "side-effect"
        assert by_source["./helper"].kind == "re-export"
        assert by_source["./helper"].specifiers == ("helper",)
        assert by_source["./all"].specifiers == ("*",)
        assert by_source["./lazy"].kind == "dynamic"

    def test_imports_keep_source_order(self):
        result = parse("""
            import b from './b'
            import './a.css'
            import c from './c'
        """)
        assert [imp.source for imp in result.imports] == ["./b", "./a.css", "./c"]

    def test_commented_import_is_ignored(self):
        result = parse("""
            // import { old } from './old'
            /* import { older } from './older' */
            import { live } from './live'
        """)
        assert [imp.source for imp in result.imports] == ["./live"]

    def test_template_dynamic_import_is_skipped(self):
        result = parse("const m = import(`./locales/${lang}`)\n")
        assert result.imports == ()

    def test_aliased_specifier_records_original_name(self):
        assert parse_import_clause("{ a as b, c }") == ("a", "c")

    def test_resolution_uses_resolver(self):
        resolver = ImportResolver.for_modules({"src/lib/db.ts"})
        result = parse("import { db } from './db'\nimport x from 'lodash'\n", resolver=resolver)
        assert result.imports[0].resolved_path == "src/lib/db.ts"
        assert result.imports[1].resolved_path is None


class TestExports:
    def test_declaration_kinds(self):
        result = parse("""
            export async function load(id: string): Promise<User> { return get(id) }
            export const LIMIT = 10
            export class Store {}
            export interface Props { a: string }
            export type Id = string
            export enum Color { Red }
        """)
        kinds = {e.name: e.kind for e in result.exports}
        assert kinds == {
            "load": "function",
            "LIMIT": "variable",
            "Store": "class",
            "Props": "interface",
            "Id": "type",
            "Color": "enum",
        }
        by_name = {e.name: e for e in result.exports}
        assert by_name["Props"].is_type_only
        assert by_name["load"].signature == "(id: string) => Promise<User>"

    def test_signature_defaults_to_void(self):
        result = parse("export function reset(a, b) {\n  a = b\n}\n")
        assert result.exports[0].signature == "(a, b) => void"

    def test_default_exports(self):
        named = parse("export default function Page() { return null }\n", "app/page.tsx")
        assert named.exports[0].name == "Page"
        assert named.exports[0].kind == "default"

        anonymous = parse("export default () => null\n")
        assert anonymous.exports[0].name == "default"

        identifier = parse("const Button = () => null\nexport default Button\n")
        assert identifier.exports[-1].name == "Button"

    def test_export_list_and_aliases(self):
        result = parse("""
            const a = 1, b = 2
            type T = string
            export { a, b as beta, type T }
        """)
        by_name = {e.name: e for e in result.exports}
        assert set(by_name) == {"a", "beta", "T"}
        assert by_name["T"].is_type_only

    def test_overloads_are_deduplicated(self):
        result = parse("""
            export function f(a: string): string
            export function f(a: number): number
            export function f(a: any) { return a }
        """)
        assert [e.name for e in result.exports] == ["f"]


class TestBehaviour:
    def test_client_component_facts(self):
        result = parse("""
            'use client'
            import { useEffect, useState } from 'react'

            export default function Cart() {
              const [items, setItems] = useState<Item[]>([])
              const [state, dispatch] = useReducer(reducer, { open: false })
              const session = useSession()
              useEffect(() => {
                fetch('/api/cart', { method: 'post' })
                window.addEventListener('resize', onResize)
              }, [])
              return <Layout><CartItem /><div /></Layout>
            }
        """, "src/components/Cart.tsx")

        assert result.client_marked is True
        assert result.render_kind == "client"
        assert result.hooks == ("useState", "useReducer", "useSession", "useEffect")
        assert [(s.name, s.initial_value) for s in result.state] == [
            ("items", "[]"),
            ("state", "{ open: false }"),
        ]
        assert [(c.endpoint, c.method) for c in result.api_calls] == [("/api/cart", "POST")]
        assert result.elements == ("Layout", "CartItem")
        assert "useEffect" in result.side_effects
        assert "addEventListener" in result.side_effects
        assert Role.COMPONENT in result.roles

    def test_directive_must_lead(self):
        result = parse("import x from 'y'\n'use client'\n", "src/components/X.tsx")
        assert result.client_marked is False

    def test_hook_definition_is_not_a_hook_call(self):
        result = parse("export function useCart() {\n  return useContext(CartContext)\n}\n")
        assert result.hooks == ("useContext",)

    def test_axios_and_env_vars(self):
        result = parse("""
            const res = await axios.delete(`/api/items/1`)
            const key = process.env.STRIPE_KEY
            const url = process.env['DATABASE_URL']
            const mode = import.meta.env.VITE_MODE
        """)
        assert [(c.endpoint, c.method) for c in result.api_calls] == [("/api/items/1", "DELETE")]
        assert result.env_vars == ("STRIPE_KEY", "DATABASE_URL", "VITE_MODE")

    def test_data_access_becomes_side_effects(self):
        result = parse("""
            export async function POST(req: Request) {
              const user = await prisma.user.create({ data: {} })
              await db.order.findMany()
              await prisma.user.create({ data: {} })
              return Response.json(user)
            }
        """, "app/api/users/route.ts")
        assert [(a.model, a.operation) for a in result.data_access] == [
            ("user", "create"),
            ("order", "findMany"),
        ]
        assert result.side_effects == ("DB:create", "DB:findMany")
        assert result.roles == (Role.ROUTE_HANDLER,)

    def test_data_access_clients_come_from_config(self):
        config = merge_config({"data_access": {"clients": ["orm"]}})
        parser, _ = ParserRegistry.get_parser("src/lib/x.ts", config)
        result = parse("await orm.post.findFirst()\nawait prisma.user.findMany()\n", parser=parser)
        assert [a.model for a in result.data_access] == ["post"]

    def test_auth_markers_and_security_signals(self):
        result = parse("""
            import { exec } from 'child_process'
            export async function DELETE() {
              const session = await auth()
              exec('ls')
              eval(code)
              el.innerHTML = html
            }
        """, "app/api/admin/route.ts")
        assert result.auth_markers == ("auth()",)
        assert result.security_signals == ("child_process", "exec", "eval", "innerHTML =")

    def test_apostrophe_in_jsx_text_keeps_file_parseable(self):
        result = parse("""
            export default function Banner({ items }) {
              return (
                <p>Don't miss: {items.map((i) => (
                  <span key={i}>{i}</span>
                ))}</p>
              );
            }
        """, "components/Banner.tsx")
        assert result.exports[0].name == "Banner"
        assert result.elements == ()
        assert Role.COMPONENT in result.roles

    def test_no_jsx_elements_in_plain_ts(self):
        result = parse("const x = a <B> c\n", "src/lib/generic.ts")
        assert result.elements == ()

    def test_page_metadata(self):
        result = parse("""
            export async function getServerSideProps() { return { props: {} } }
            export default function Page({ searchParams }) {
              const t = useTranslations('checkout')
              const q = searchParams.query
              return null
            }
        """, "pages/checkout.tsx")
        assert result.data_fetching_method == "getServerSideProps"
        assert result.i18n_namespace == "checkout"
        assert result.search_params == ("query",)

    def test_line_count(self):
        result = parse("const a = 1\nconst b = 2\n")
        assert result.line_count == 2


class TestParseFile:
    def test_unbalanced_file_raises(self, tmp_path):
        path = tmp_path / "src" / "broken.ts"
        path.parent.mkdir()
        path.write_text("export function f() {\n", encoding="utf-8")
        with pytest.raises(ParseError):
            TypeScriptParser().parse_file(path, tmp_path)

    def test_invalid_utf8_raises(self, tmp_path):
        path = tmp_path / "bad.ts"
        path.write_bytes(b"const a = '\xff\xfe'\n")
        with pytest.raises(ParseError):
            TypeScriptParser().parse_file(path, tmp_path)

    def test_path_is_project_relative(self, tmp_path):
        path = tmp_path / "src" / "lib" / "ok.ts"
        path.parent.mkdir(parents=True)
        path.write_text("export const ok = true\n", encoding="utf-8")
        result = TypeScriptParser().parse_file(path, tmp_path)
        assert result.path == "src/lib/ok.ts"
        assert result.roles == (Role.LIBRARY,)
