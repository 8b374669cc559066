"""Tests for attribute parsing."""

import pytest

from anchor_audit.analysis.attributes import (
    attribute_parts,
    derives,
    find_attributes,
    normalize_token,
    parse_account_constraints,
    parse_seed_list,
    split_key_value,
    split_top_level,
)
from anchor_audit.parsing import iter_items_with_attributes


class TestSplitTopLevel:
    """Tests for top-level comma splitting."""

    def test_simple(self):
        assert split_top_level("mut, signer") == ["mut", "signer"]

    def test_brackets_are_not_split(self):
        parts = split_top_level('mut, seeds = [b"vault", user.key().as_ref()], bump')
        assert parts == ['mut', 'seeds = [b"vault", user.key().as_ref()]', 'bump']

    def test_nested_parentheses_and_braces(self):
        parts = split_top_level("constraint = f(a, b) @ E::X { c, d }, mut")
        assert parts == ["constraint = f(a, b) @ E::X { c, d }", "mut"]

    def test_commas_inside_strings(self):
        parts = split_top_level('seeds = [b"a,b"], mut')
        assert parts == ['seeds = [b"a,b"]', "mut"]

    def test_trailing_comma_dropped(self):
        assert split_top_level("mut, ") == ["mut"]

    def test_empty(self):
        assert split_top_level("") == []


class TestNormalizeToken:
    """Tests for token normalization."""

    @pytest.mark.parametrize("raw,expected", [
        ('b"vault"', 'b"vault"'),
        ("user . key ( ) . as_ref ( )", "user.key().as_ref()"),
        ("  payer  ", "payer"),
        ("& mut x", "&mut x"),
        ('b"with space"', 'b"with space"'),
    ])
    def test_normalize(self, raw, expected):
        assert normalize_token(raw) == expected


class TestSplitKeyValue:
    """Tests for key/value entry splitting."""

    def test_bare_key(self):
        assert split_key_value("mut") == ("mut", None)

    def test_key_value(self):
        assert split_key_value("payer = user") == ("payer", "user")

    def test_comparison_is_not_assignment(self):
        key, value = split_key_value("constraint == x")
        assert value is None

    def test_bare_key_with_custom_error(self):
        assert split_key_value("mut @ ErrorCode::NotMutable") == ("mut", None)

    def test_custom_error_stays_in_value(self):
        key, value = split_key_value("has_one = authority @ ErrorCode::Unauthorized")
        assert key == "has_one"
        assert value == "authority @ ErrorCode::Unauthorized"

    def test_first_assignment_wins(self):
        key, value = split_key_value("constraint = a.key() == b.key()")
        assert key == "constraint"
        assert value == "a.key() == b.key()"


class TestParseSeedList:
    """Tests for seed list parsing."""

    def test_seed_list(self):
        seeds = parse_seed_list('[b"vault", user.key().as_ref()]')
        assert seeds == ['b"vault"', "user.key().as_ref()"]

    def test_reference_prefix(self):
        assert parse_seed_list('&[b"vault"]') == ['b"vault"']

    def test_empty_list(self):
        assert parse_seed_list("[]") == []


class TestParseAccountConstraints:
    """Tests for #[account(...)] argument parsing."""

    def test_mut(self):
        constraints = parse_account_constraints("mut")
        assert constraints.mutable
        assert not constraints.initialized

    def test_init(self):
        constraints = parse_account_constraints("init, payer = user, space = 8 + 8")
        assert constraints.init
        assert constraints.initialized
        assert not constraints.mutable
        assert constraints.keys == ["init", "payer", "space"]

    def test_init_if_needed(self):
        constraints = parse_account_constraints("init_if_needed, payer = user")
        assert constraints.init_if_needed
        assert not constraints.init
        assert constraints.initialized

    def test_signer_keyword(self):
        assert parse_account_constraints("signer").signer

    def test_seeds(self):
        constraints = parse_account_constraints('mut, seeds = [b"pool", mint.key().as_ref()], bump')
        assert constraints.seeds == ['b"pool"', "mint.key().as_ref()"]
        assert constraints.keys == ["mut", "seeds", "bump"]

    def test_no_seeds(self):
        assert parse_account_constraints("mut").seeds is None

    @pytest.mark.parametrize("arguments, flag", [
        ("mut @ ErrorCode::NotMutable", "mutable"),
        ("mut@MyError::ReadOnly, has_one = owner", "mutable"),
        ("signer @ ErrorCode::NotSigner", "signer"),
        ("init @ ErrorCode::Exists, payer = user, space = 8", "init"),
        ("init_if_needed @ ErrorCode::Exists, payer = user", "init_if_needed"),
    ])
    def test_flag_with_custom_error(self, arguments, flag):
        constraints = parse_account_constraints(arguments)
        assert getattr(constraints, flag)
        assert constraints.keys[0] == arguments.split("@")[0].strip()

    def test_mut_inside_value_is_not_a_flag(self):
        constraints = parse_account_constraints("constraint = is_mut(x)")
        assert not constraints.mutable

    def test_merge(self):
        merged = parse_account_constraints("mut").merge(
            parse_account_constraints('seeds = [b"x"], bump')
        )
        assert merged.mutable
        assert merged.seeds == ['b"x"']


class TestAttributeNodes:
    """Tests for attribute node helpers."""

    SOURCE = '''
        #[derive(Accounts, Clone)]
        #[instruction(amount: u64)]
        pub struct Deposit<'info> {
            pub user: Signer<'info>,
        }

        #[derive(Debug)]
        pub struct Plain {
            pub x: u8,
        }
    '''

    def test_attribute_parts(self, parse):
        unit = parse(self.SOURCE)
        (item, attrs), _ = list(iter_items_with_attributes(unit.root))
        assert item.type == "struct_item"
        assert attribute_parts(unit, attrs[0]) == ("derive", "Accounts, Clone")
        assert attribute_parts(unit, attrs[1]) == ("instruction", "amount: u64")

    def test_derives(self, parse):
        unit = parse(self.SOURCE)
        (_, first_attrs), (_, second_attrs) = list(iter_items_with_attributes(unit.root))
        assert derives(unit, first_attrs, "Accounts")
        assert not derives(unit, second_attrs, "Accounts")

    def test_scoped_derive(self, parse):
        unit = parse('''
            #[derive(anchor_lang::Accounts)]
            pub struct Scoped {}
        ''')
        (_, attrs), = list(iter_items_with_attributes(unit.root))
        assert derives(unit, attrs, "Accounts")

    def test_bare_attribute(self, parse):
        unit = parse('''
            #[program]
            pub mod my_program {}
        ''')
        (_, attrs), = list(iter_items_with_attributes(unit.root))
        assert find_attributes(unit, attrs, "program")[0][1] is None
