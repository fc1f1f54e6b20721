"""Tests for the standalone routes migration.

Tests cover:
- Locating route arrays (provideRouter, RouterModule.forRoot/forChild,
  Router.resetConfig through fields, inject() and parameters)
- Rewriting `component` routes to `loadComponent`
- Skipping non-standalone, unresolved and same-file components
- Removing orphaned import specifiers and keeping referenced ones
- Output well-formedness, idempotence and non-overlapping edits
"""

import pytest

from lazyroutes.core.ast_parser import parse_source
from lazyroutes.core.ast_parser.nodes import walk
from lazyroutes.core.change_tracker import Printer, apply_changes
from lazyroutes.core.config import MigrationConfig
from lazyroutes.core.migration import (
    RouteCallKind,
    classify_route_call,
    find_literal_property,
    find_routes_arrays_to_migrate,
    to_lazy_standalone_routes,
)
from lazyroutes.core.migration.context import MigrationStats
from lazyroutes.core.migration.rewriter import module_specifier
from lazyroutes.core.program import Program


ROOT = "/project"

FOO = '''import { Component } from '@angular/core';

@Component({ selector: 'app-foo', standalone: true, template: '' })
export class FooComponent {}
'''

BAR = '''import { Component } from '@angular/core';

@Component({ selector: 'app-bar', template: '' })
export class BarComponent {}
'''

LEGACY = '''import { Component } from '@angular/core';

@Component({ selector: 'app-legacy', standalone: false, template: '' })
export class LegacyComponent {}
'''

DEFAULT = '''import { Component } from '@angular/core';

@Component({ selector: 'app-default', template: '' })
export default class DefaultComponent {}

export function helper() {}
'''

SHARED = '''export * from '../foo/foo.component';
export * from '../bar/bar.component';
export const helper = () => true;
'''

COMPONENTS = {
    "src/app/foo/foo.component.ts": FOO,
    "src/app/bar/bar.component.ts": BAR,
    "src/app/legacy/legacy.component.ts": LEGACY,
    "src/app/default/default.component.ts": DEFAULT,
    "src/app/shared/index.ts": SHARED,
}

ROUTES_FILE = "src/app/app.routes.ts"


def _migrate(routes_text, quote_style="single", import_remapper=None, extra_files=None, **config):
    """Run the migration over COMPONENTS plus one routes file.

    Returns (changes, migrated routes file text, stats).
    """
    files = dict(COMPONENTS)
    files.update(extra_files or {})
    files[ROUTES_FILE] = routes_text
    source_files = [parse_source(text, f"{ROOT}/{path}") for path, text in files.items()]
    program = Program(source_files, ROOT, MigrationConfig(quote_style=quote_style, **config))
    stats = MigrationStats()

    changes = to_lazy_standalone_routes(
        source_files,
        program,
        Printer(quote_style),
        import_remapper=import_remapper,
        stats=stats,
    )

    output = apply_changes(routes_text, changes.get(f"{ROOT}/{ROUTES_FILE}", []))
    return changes, output, stats


def _routes_source(text):
    files = dict(COMPONENTS)
    files[ROUTES_FILE] = text
    source_files = [parse_source(t, f"{ROOT}/{path}") for path, t in files.items()]
    program = Program(source_files, ROOT)
    return program.get_source_file(f"{ROOT}/{ROUTES_FILE}"), program.get_type_checker()


# =========================================================================
# Tests: Rewriting
# =========================================================================

class TestProvideRouter:
    ROUTES = '''import { bootstrapApplication } from '@angular/platform-browser';
import { provideRouter } from '@angular/router';
import { FooComponent } from './foo/foo.component';
import { AppComponent } from './app.component';

bootstrapApplication(AppComponent, {
  providers: [provideRouter([{ path: 'foo', component: FooComponent }])],
});
'''

    EXPECTED = '''import { bootstrapApplication } from '@angular/platform-browser';
import { provideRouter } from '@angular/router';
import { AppComponent } from './app.component';

bootstrapApplication(AppComponent, {
  providers: [provideRouter([{ path: 'foo', loadComponent: () => import('./foo/foo.component').then(m => m.FooComponent) }])],
});
'''

    def test_exact_output(self):
        _, output, stats = _migrate(self.ROUTES)

        assert output == self.EXPECTED
        assert stats.routes_migrated == 1
        assert stats.imports_removed == 1

    def test_only_routes_file_changes(self):
        changes, _, _ = _migrate(self.ROUTES)
        assert list(changes) == [f"{ROOT}/{ROUTES_FILE}"]

    def test_output_is_well_formed(self):
        _, output, _ = _migrate(self.ROUTES)
        assert not parse_source(output, f"{ROOT}/{ROUTES_FILE}").tree.root_node.has_error

    def test_second_run_is_a_no_op(self):
        _, output, _ = _migrate(self.ROUTES)
        changes, again, stats = _migrate(output)

        assert changes == {}
        assert again == output
        assert stats.routes_migrated == 0

    def test_angle_bracket_cast_routes(self):
        routes = '''import { provideRouter, Routes } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export const providers = [provideRouter(<Routes>[{ path: 'foo', component: FooComponent }])];
'''
        _, output, stats = _migrate(routes)

        assert "provideRouter(<Routes>[{ path: 'foo', loadComponent: () => import('./foo/foo.component').then(m => m.FooComponent) }])" in output
        assert "import { FooComponent }" not in output
        assert stats.routes_migrated == 1

    def test_cast_component_options(self):
        files = {
            "src/app/cast/cast.component.ts": '''import { Component } from '@angular/core';

@Component(<any>{ selector: 'app-cast', template: '' })
export class CastComponent {}
''',
        }
        routes = '''import { provideRouter } from '@angular/router';
import { CastComponent } from './cast/cast.component';

export const providers = [provideRouter([{ path: '', component: CastComponent }])];
'''
        _, output, _ = _migrate(routes, extra_files=files)
        assert "import('./cast/cast.component').then(m => m.CastComponent)" in output

    def test_double_quotes(self):
        _, output, _ = _migrate(self.ROUTES, quote_style="double")
        assert 'loadComponent: () => import("./foo/foo.component").then(m => m.FooComponent)' in output

    def test_import_remapper(self):
        calls = []

        def remap(specifier, file_name):
            calls.append((specifier, file_name))
            return specifier.replace("./", "@app/", 1)

        _, output, _ = _migrate(self.ROUTES, import_remapper=remap)

        assert "import('@app/foo/foo.component')" in output
        assert calls == [("./foo/foo.component", f"{ROOT}/{ROUTES_FILE}")]


class TestRouterModule:
    def test_for_root_mixed_standalone(self):
        routes = '''import { NgModule } from '@angular/core';
import { RouterModule } from '@angular/router';
import { FooComponent } from './foo/foo.component';
import { LegacyComponent } from './legacy/legacy.component';

@NgModule({
  imports: [RouterModule.forRoot([
    { path: 'foo', component: FooComponent },
    { path: 'legacy', component: LegacyComponent },
  ])],
})
export class AppRoutingModule {}
'''
        _, output, stats = _migrate(routes)

        assert "import { FooComponent }" not in output
        assert "import { LegacyComponent } from './legacy/legacy.component';" in output
        assert "{ path: 'foo', loadComponent: () => import('./foo/foo.component').then(m => m.FooComponent) }" in output
        assert "{ path: 'legacy', component: LegacyComponent }" in output
        assert stats.routes_migrated == 1
        assert stats.routes_skipped["not-standalone"] == 1

    def test_only_non_standalone_yields_no_changes(self):
        routes = '''import { RouterModule } from '@angular/router';
import { LegacyComponent } from './legacy/legacy.component';

export const routing = RouterModule.forRoot([{ path: '', component: LegacyComponent }]);
'''
        changes, output, _ = _migrate(routes)

        assert changes == {}
        assert output == routes

    def test_for_child_through_alias(self):
        routes = '''import { RouterModule as RM } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export const routing = RM.forChild([{ path: '', component: FooComponent }]);
'''
        _, output, _ = _migrate(routes)
        assert "loadComponent: () => import('./foo/foo.component').then(m => m.FooComponent)" in output

    def test_for_child_on_other_receiver_is_ignored(self):
        routes = '''import { FooComponent } from './foo/foo.component';

class OtherModule {
  static forChild(routes: unknown[]) { return routes; }
}

export const routing = OtherModule.forChild([{ path: '', component: FooComponent }]);
'''
        changes, _, _ = _migrate(routes)
        assert changes == {}

    def test_forroot_with_standalone_default_disabled(self):
        routes = '''import { RouterModule } from '@angular/router';
import { BarComponent } from './bar/bar.component';

export const routing = RouterModule.forRoot([{ path: '', component: BarComponent }]);
'''
        changes, _, stats = _migrate(routes, standalone_default=False)

        assert changes == {}
        assert stats.routes_skipped["not-standalone"] == 1

    def test_missing_flag_defaults_to_standalone(self):
        routes = '''import { RouterModule } from '@angular/router';
import { BarComponent } from './bar/bar.component';

export const routing = RouterModule.forRoot([{ path: '', component: BarComponent }]);
'''
        _, output, _ = _migrate(routes)
        assert "then(m => m.BarComponent)" in output


class TestResetConfig:
    def test_constructor_parameter_property(self):
        routes = '''import { Component } from '@angular/core';
import { Router } from '@angular/router';
import { FooComponent } from './foo/foo.component';

@Component({ selector: 'app-root', template: '' })
export class AppComponent {
  constructor(private router: Router) {}

  reset() {
    this.router.resetConfig([{ path: 'foo', component: FooComponent }]);
  }
}
'''
        _, output, stats = _migrate(routes)

        assert stats.routes_migrated == 1
        assert "import { FooComponent }" not in output

    def test_inject_field(self):
        routes = '''import { inject } from '@angular/core';
import { Router } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export class Shell {
  private readonly router = inject(Router);

  reset() {
    this.router.resetConfig([{ path: 'foo', component: FooComponent }]);
  }
}
'''
        _, _, stats = _migrate(routes)
        assert stats.routes_migrated == 1

    def test_annotated_function_parameter(self):
        routes = '''import { Router } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export function reset(router: Router) {
  router.resetConfig([{ path: 'foo', component: FooComponent }]);
}
'''
        _, _, stats = _migrate(routes)
        assert stats.routes_migrated == 1

    def test_cast_receiver(self):
        routes = '''import { Router } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export function reset(router: any) {
  (<Router>router).resetConfig([{ path: 'a', component: FooComponent }]);
  (router as Router).resetConfig([{ path: 'b', component: FooComponent }]);
}
'''
        _, _, stats = _migrate(routes)
        assert stats.routes_migrated == 2

    def test_routes_passed_by_identifier_are_not_followed(self):
        routes = '''import { Router } from '@angular/router';
import { FooComponent } from './foo/foo.component';

const routes = [{ path: 'foo', component: FooComponent }];

export function reset(router: Router) {
  router.resetConfig(routes);
}
'''
        changes, _, _ = _migrate(routes)
        assert changes == {}

    def test_untyped_receiver_is_ignored(self):
        routes = '''import { FooComponent } from './foo/foo.component';

export function reset(router: any) {
  router.resetConfig([{ path: 'foo', component: FooComponent }]);
}
'''
        changes, _, _ = _migrate(routes)
        assert changes == {}


class TestSkippedRoutes:
    def test_member_expression_component(self):
        routes = '''import { provideRouter } from '@angular/router';
import * as foo from './foo/foo.component';

export const providers = [provideRouter([{ path: '', component: foo.FooComponent }])];
'''
        changes, _, stats = _migrate(routes)

        assert changes == {}
        assert stats.routes_skipped["not-identifier"] == 1

    def test_external_component(self):
        routes = '''import { provideRouter } from '@angular/router';
import { ExternalComponent } from 'some-lib';

export const providers = [provideRouter([{ path: '', component: ExternalComponent }])];
'''
        changes, _, stats = _migrate(routes)

        assert changes == {}
        assert stats.routes_skipped["unresolved"] == 1

    def test_component_declared_in_routes_file(self):
        routes = '''import { Component } from '@angular/core';
import { provideRouter } from '@angular/router';

@Component({ selector: 'app-local', template: '' })
export class LocalComponent {}

export const providers = [provideRouter([{ path: '', component: LocalComponent }])];
'''
        changes, _, stats = _migrate(routes)

        assert changes == {}
        assert stats.routes_skipped["same-file"] == 1

    def test_children_are_not_visited(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent } from './foo/foo.component';
import { BarComponent } from './bar/bar.component';

export const providers = [provideRouter([
  { path: 'foo', component: FooComponent, children: [{ path: 'bar', component: BarComponent }] },
])];
'''
        _, output, stats = _migrate(routes)

        assert stats.routes_migrated == 1
        assert "{ path: 'bar', component: BarComponent }" in output
        assert "import { BarComponent } from './bar/bar.component';" in output
        assert "import { FooComponent }" not in output

    def test_string_keyed_component_property_is_ignored(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export const providers = [provideRouter([{ path: '', 'component': FooComponent }])];
'''
        changes, _, _ = _migrate(routes)
        assert changes == {}


# =========================================================================
# Tests: Import cleanup
# =========================================================================

class TestImportCleanup:
    def test_still_referenced_import_is_kept(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export const providers = [provideRouter([{ path: '', component: FooComponent }])];
export const title = FooComponent.name;
'''
        _, output, stats = _migrate(routes)

        assert "import { FooComponent } from './foo/foo.component';" in output
        assert "loadComponent" in output
        assert stats.imports_removed == 0

    def test_only_orphaned_specifiers_are_removed(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent, helper, BarComponent } from './shared';

helper();

export const providers = [provideRouter([
  { path: 'foo', component: FooComponent },
  { path: 'bar', component: BarComponent },
])];
'''
        _, output, stats = _migrate(routes)

        assert "import { helper } from './shared';" in output
        assert "import('./foo/foo.component').then(m => m.FooComponent)" in output
        assert "import('./bar/bar.component').then(m => m.BarComponent)" in output
        assert stats.imports_removed == 2

    def test_leading_specifier_removed(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent, helper } from './shared';

helper();
export const providers = [provideRouter([{ path: '', component: FooComponent }])];
'''
        _, output, _ = _migrate(routes)
        assert "import { helper } from './shared';" in output

    def test_default_import_removed_named_kept(self):
        routes = '''import { provideRouter } from '@angular/router';
import DefaultComponent, { helper } from './default/default.component';

helper();
export const providers = [provideRouter([{ path: '', component: DefaultComponent }])];
'''
        _, output, _ = _migrate(routes)

        assert "import { helper } from './default/default.component';" in output
        assert "import('./default/default.component').then(m => m.default)" in output

    def test_named_removed_default_kept(self):
        routes = '''import { provideRouter } from '@angular/router';
import Shared, { FooComponent } from './shared';

export const shared = Shared;
export const providers = [provideRouter([{ path: '', component: FooComponent }])];
'''
        _, output, _ = _migrate(routes)
        assert "import Shared from './shared';" in output

    def test_default_export_whole_import_removed(self):
        routes = '''import { provideRouter } from '@angular/router';
import Page from './default/default.component';

export const providers = [provideRouter([{ path: '', component: Page }])];
'''
        _, output, _ = _migrate(routes)

        assert "import Page" not in output
        assert "loadComponent: () => import('./default/default.component').then(m => m.default)" in output

    def test_two_arrays_share_one_import(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent } from './foo/foo.component';

export const a = provideRouter([{ path: 'a', component: FooComponent }]);
export const b = provideRouter([{ path: 'b', component: FooComponent }]);
'''
        changes, output, stats = _migrate(routes)

        assert stats.routes_migrated == 2
        assert stats.imports_removed == 1
        assert output.count("loadComponent") == 2
        assert "import { FooComponent }" not in output

    def test_path_alias_import(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent } from '@app/foo/foo.component';

export const providers = [provideRouter([{ path: '', component: FooComponent }])];
'''
        _, output, _ = _migrate(routes, path_aliases={"@app/*": ["src/app/*"]})

        assert "import { FooComponent }" not in output
        assert "import('./foo/foo.component')" in output

    def test_mts_component_keeps_runtime_extension(self):
        files = {"src/app/esm/esm.component.mts": FOO.replace("FooComponent", "EsmComponent")}
        routes = '''import { provideRouter } from '@angular/router';
import { EsmComponent } from './esm/esm.component.mjs';

export const providers = [provideRouter([{ path: '', component: EsmComponent }])];
'''
        _, output, _ = _migrate(routes, extra_files=files)

        assert "import('./esm/esm.component.mjs').then(m => m.EsmComponent)" in output
        assert "import { EsmComponent }" not in output

        changes, _, _ = _migrate(output, extra_files=files)
        assert changes == {}

    def test_changes_do_not_overlap(self):
        routes = '''import { provideRouter } from '@angular/router';
import { FooComponent, helper, BarComponent } from './shared';

helper();
export const providers = [provideRouter([
  { path: 'foo', component: FooComponent },
  { path: 'bar', component: BarComponent },
])];
'''
        changes, output, _ = _migrate(routes)

        for file_changes in changes.values():
            for previous, current in zip(file_changes, file_changes[1:]):
                assert previous.end <= current.start
        assert not parse_source(output, f"{ROOT}/{ROUTES_FILE}").tree.root_node.has_error


# =========================================================================
# Tests: Locator and helpers
# =========================================================================

class TestLocator:
    def _calls(self, source_file):
        return [n for n in walk(source_file.root) if n.type == "call_expression"]

    def test_classify_provide_router(self):
        sf, checker = _routes_source(
            "import { provideRouter as pr } from '@angular/router';\nexport const p = pr([]);\n"
        )
        kinds = [classify_route_call(sf, call, checker) for call in self._calls(sf)]
        assert kinds == [RouteCallKind.PROVIDE_ROUTER]

    def test_classify_for_root_and_for_child(self):
        sf, checker = _routes_source(
            "import { RouterModule } from '@angular/router';\n"
            "export const a = RouterModule.forRoot([]);\n"
            "export const b = RouterModule.forChild([]);\n"
        )
        kinds = [classify_route_call(sf, call, checker) for call in self._calls(sf)]
        assert kinds == [RouteCallKind.ROUTER_MODULE_FOR_ROOT, RouteCallKind.ROUTER_MODULE_FOR_CHILD]

    def test_unrelated_call(self):
        sf, checker = _routes_source("export const a = Math.max(1, 2);\n")
        assert classify_route_call(sf, self._calls(sf)[0], checker) == RouteCallKind.NONE

    def test_wrapped_array_is_found(self):
        sf, checker = _routes_source(
            "import { provideRouter } from '@angular/router';\n"
            "export const p = provideRouter([{ path: '' }] as const);\n"
        )
        arrays = find_routes_arrays_to_migrate(sf, checker)
        assert [a.type for a in arrays] == ["array"]

    def test_angle_bracket_cast_array_is_found(self):
        sf, checker = _routes_source(
            "import { provideRouter, Routes } from '@angular/router';\n"
            "export const p = provideRouter(<Routes>[{ path: '' }]);\n"
        )
        arrays = find_routes_arrays_to_migrate(sf, checker)
        assert [a.type for a in arrays] == ["array"]

    def test_spread_is_not_followed(self):
        sf, checker = _routes_source(
            "import { provideRouter } from '@angular/router';\n"
            "const base = [];\n"
            "export const p = provideRouter(...base);\n"
        )
        assert find_routes_arrays_to_migrate(sf, checker) == []

    def test_find_literal_property(self):
        sf, _ = _routes_source("export const r = { path: '', 'component': A, component: B };\n")
        literal = next(n for n in walk(sf.root) if n.type == "object")

        prop = find_literal_property(sf, literal, "component")

        assert sf.node_text(prop) == "component: B"
        assert find_literal_property(sf, literal, "children") is None


@pytest.mark.parametrize("from_file,to_file,expected", [
    ("/p/src/app/app.routes.ts", "/p/src/app/foo/foo.component.ts", "./foo/foo.component"),
    ("/p/src/app/app.routes.ts", "/p/src/app/app.component.ts", "./app.component"),
    ("/p/src/app/admin/admin.routes.ts", "/p/src/app/shared/page.component.tsx", "../shared/page.component"),
    ("/p/src/app/app.routes.ts", "/p/src/app/esm/esm.component.mts", "./esm/esm.component.mjs"),
    ("/p/src/app/app.routes.ts", "/p/src/app/cjs/cjs.component.cts", "./cjs/cjs.component.cjs"),
])
def test_module_specifier(from_file, to_file, expected):
    assert module_specifier(from_file, to_file) == expected
