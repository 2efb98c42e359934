import pytest

from component_migrator.import_rules import (
    ImportRewriter,
    alias_prefixes,
    alias_rewrites,
    aliased_path,
    parse_mapping,
    split_pattern,
)
from component_migrator.models import ImportRewriteRule


@pytest.mark.unit
class TestPatterns:
    """Test "source:target" pattern parsing."""

    def test_split_pattern(self) -> None:
        assert split_pattern("../shared:@/shared") == ("../shared", "@/shared")
        assert split_pattern("a:b:c") == ("a", "b:c")

    def test_invalid_pattern(self) -> None:
        with pytest.raises(ValueError, match="Invalid pattern format"):
            split_pattern("no-separator")
        with pytest.raises(ValueError, match="Invalid pattern format"):
            split_pattern(":target")

    def test_parse_mapping_last_wins(self) -> None:
        assert parse_mapping(["Old:New", "Old:Newer", "A:B"]) == {"Old": "Newer", "A": "B"}
        assert parse_mapping(None) == {}


@pytest.mark.unit
class TestImportRewriter:
    """Test longest-prefix import rewriting."""

    def test_longest_prefix_wins_regardless_of_order(self) -> None:
        rewriter = ImportRewriter({"../lib": "@/lib", "../lib/theme": "@/theme"})
        assert rewriter.rewrite("../lib/theme/dark") == "@/theme/dark"
        assert rewriter.rewrite("../lib/format") == "@/lib/format"

    def test_prefix_matches_on_path_boundary(self) -> None:
        rewriter = ImportRewriter({"../shared": "@/shared"})
        assert rewriter.rewrite("../shared") == "@/shared"
        assert rewriter.rewrite("../shared/Icon") == "@/shared/Icon"
        assert rewriter.rewrite("../shared-utils/x") is None

    def test_trailing_slash_prefix(self) -> None:
        rewriter = ImportRewriter({"~/": "@/"})
        assert rewriter.rewrite("~/hooks/useThing") == "@/hooks/useThing"

    def test_tsconfig_style_globs(self) -> None:
        rewriter = ImportRewriter({"@app/*": "src/app/*"})
        assert rewriter.rewrite("@app/store") == "src/app/store"

    def test_no_match(self) -> None:
        assert ImportRewriter({"../lib": "@/lib"}).rewrite("react") is None
        assert ImportRewriter().rewrite("./x") is None

    def test_from_rules_and_patterns(self) -> None:
        rewriter = ImportRewriter([ImportRewriteRule("../a", "@/a")])
        assert rewriter.match("../a/b") == ImportRewriteRule("../a", "@/a")
        assert ImportRewriter.from_patterns(["../a:@/a"]).rewrite("../a/b") == "@/a/b"


@pytest.mark.unit
class TestPathAliases:
    """Test tsconfig alias prefixes and rewrites between projects."""

    def test_alias_prefixes(self) -> None:
        paths = {"@/*": ["./src/*"], "root/*": ["*"], "exact": ["src/exact.js"], "up/*": ["../shared/*"]}
        assert alias_prefixes(paths) == {"@/": "src/", "root/": ""}

    def test_aliased_path_prefers_the_deepest_directory(self) -> None:
        aliases = {"@/": "src/", "@ui/": "src/ui/"}
        assert aliased_path("src/ui/Button", aliases) == "@ui/Button"
        assert aliased_path("src/lib/format", aliases) == "@/lib/format"
        assert aliased_path("lib/format", aliases) is None

    def test_alias_rewrites_between_projects(self) -> None:
        source = {"~/": "src/", "~components/": "src/components/", "@/": "app/"}
        target = {"@/": "src/"}
        assert alias_rewrites(source, target) == {"~/": "@/", "~components/": "@/components/"}

    def test_identical_aliases_need_no_rewrite(self) -> None:
        assert alias_rewrites({"@/": "src/"}, {"@/": "src/"}) == {}
