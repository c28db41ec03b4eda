"""
Eligibility rules for the scholarship program.

A CriteriaConfig holds the administrator-set thresholds for a semester. The
evaluator compares an applicant's attributes against it and returns one status
per criterion. Evaluation is pure: it reads its inputs and returns a report.

Administrators can override any criterion. An override always wins over the
computed status, but the report keeps both so the computed baseline stays
visible next to the manual decision.
"""
from dataclasses import dataclass, field, fields, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from django.core.exceptions import ValidationError

from .choices import ACADEMIC_CRITERIA, PERSONAL_CRITERIA, Criterion, CriterionStatus


@dataclass(frozen=True)
class CriteriaConfig:
    residency_years: int = 3
    voter_required: bool = True
    income_threshold: Decimal = Decimal('25000')
    age_min: int = 16
    age_max: int = 25
    gpa_minimum: Decimal = Decimal('2.5')
    units_minimum: int = 12
    allow_failing_grades: bool = False

    def __post_init__(self):
        errors = {}
        if self.residency_years < 0:
            errors['residency_years'] = 'Residency years cannot be negative.'
        if self.income_threshold < 0:
            errors['income_threshold'] = 'Income threshold cannot be negative.'
        if self.age_min < 0:
            errors['age_min'] = 'Minimum age cannot be negative.'
        if self.age_max < self.age_min:
            errors['age_max'] = 'Maximum age cannot be lower than minimum age.'
        if not Decimal('0') <= self.gpa_minimum <= Decimal('4'):
            errors['gpa_minimum'] = 'GPA minimum must be between 0 and 4.'
        if self.units_minimum < 0:
            errors['units_minimum'] = 'Unit minimum cannot be negative.'
        if errors:
            raise ValidationError(errors)

    @classmethod
    def from_mapping(cls, data: Mapping) -> 'CriteriaConfig':
        """Build a config from loosely typed input, rejecting anything non-numeric"""
        values = {}
        errors = {}
        for config_field in fields(cls):
            if config_field.name not in data or data[config_field.name] is None:
                continue
            raw = data[config_field.name]
            try:
                values[config_field.name] = _coerce(config_field.type, raw)
            except (TypeError, ValueError, InvalidOperation):
                errors[config_field.name] = f'Invalid value: {raw!r}'
        if errors:
            raise ValidationError(errors)
        return cls(**values)

    def as_dict(self):
        return {config_field.name: getattr(self, config_field.name) for config_field in fields(self)}

    def describe(self, criterion):
        """Human readable rule text shown next to each criterion"""
        descriptions = {
            Criterion.RESIDENCY: f'Minimum {self.residency_years} years of residency required',
            Criterion.VOTER: ('Registered voter in Taguig City' if self.voter_required
                              else 'Voter registration not required'),
            Criterion.INCOME: f'Below ₱{self.income_threshold:,.0f} monthly family income',
            Criterion.AGE: f'Between {self.age_min}–{self.age_max} years old',
            Criterion.ENROLLMENT: 'Currently enrolled in accredited institution',
            Criterion.GPA: f'Minimum GPA of {self.gpa_minimum} or equivalent',
            Criterion.UNITS: f'Minimum {self.units_minimum} units per semester',
            Criterion.GRADES: ('Failing grades allowed' if self.allow_failing_grades
                               else 'No failing grades in previous semester'),
        }
        return descriptions[criterion]


DEFAULT_CRITERIA = CriteriaConfig()


def _coerce(annotation, raw):
    if annotation in (bool, 'bool'):
        if isinstance(raw, str):
            lowered = raw.strip().lower()
            if lowered in ('true', '1', 'yes', 'on'):
                return True
            if lowered in ('false', '0', 'no', 'off', ''):
                return False
            raise ValueError(raw)
        return bool(raw)
    if annotation in (int, 'int'):
        if isinstance(raw, float) and not raw.is_integer():
            raise ValueError(raw)
        return int(raw)
    value = Decimal(str(raw))
    if not value.is_finite():
        raise ValueError(raw)
    return value


@dataclass(frozen=True)
class ApplicantAttributes:
    """The applicant facts the rules look at; None means not yet provided"""
    years_resident: Optional[int] = None
    is_registered_voter: Optional[bool] = None
    monthly_family_income: Optional[Decimal] = None
    age: Optional[int] = None
    gpa: Optional[Decimal] = None
    is_enrolled: Optional[bool] = None
    enrolled_units: Optional[int] = None
    has_failing_grades: Optional[bool] = None

    @classmethod
    def from_record(cls, record, today=None):
        """Read attributes off an application row (a mapping or a model instance)"""
        def get(name):
            if isinstance(record, Mapping):
                return record.get(name)
            return getattr(record, name, None)

        income = get('monthly_family_income')
        gpa = get('gpa')
        return cls(
            years_resident=get('years_of_residency'),
            is_registered_voter=get('is_registered_voter'),
            monthly_family_income=Decimal(str(income)) if income is not None else None,
            age=age_on(get('date_of_birth'), today or date.today()),
            gpa=Decimal(str(gpa)) if gpa is not None else None,
            is_enrolled=get('is_enrolled'),
            enrolled_units=get('enrolled_units'),
            has_failing_grades=get('has_failing_grades'),
        )


def age_on(date_of_birth, today):
    if date_of_birth is None:
        return None
    if isinstance(date_of_birth, str):
        date_of_birth = date.fromisoformat(date_of_birth)
    had_birthday = (today.month, today.day) >= (date_of_birth.month, date_of_birth.day)
    return today.year - date_of_birth.year - (0 if had_birthday else 1)


@dataclass(frozen=True)
class Override:
    status: CriterionStatus
    set_by: Optional[str] = None
    note: str = ''


@dataclass(frozen=True)
class CriterionResult:
    criterion: Criterion
    computed: CriterionStatus
    override: Optional[Override] = None
    description: str = ''

    @property
    def status(self):
        if self.override is not None:
            return self.override.status
        return self.computed

    @property
    def is_overridden(self):
        return self.override is not None

    def as_dict(self):
        return {
            'criterion': self.criterion.value,
            'title': self.criterion.label,
            'description': self.description,
            'status': self.status.value,
            'computed_status': self.computed.value,
            'overridden': self.is_overridden,
            'override_by': self.override.set_by if self.override else None,
            'override_note': self.override.note if self.override else '',
        }


@dataclass(frozen=True)
class EligibilityReport:
    results: tuple = field(default_factory=tuple)

    def result_for(self, criterion) -> CriterionResult:
        for result in self.results:
            if result.criterion == criterion:
                return result
        raise KeyError(criterion)

    def status_of(self, criterion):
        return self.result_for(criterion).status

    @property
    def overall(self):
        statuses = {result.status for result in self.results}
        if CriterionStatus.FAILED in statuses:
            return CriterionStatus.FAILED
        if CriterionStatus.ATTENTION in statuses:
            return CriterionStatus.ATTENTION
        return CriterionStatus.PASSED

    @property
    def personal(self):
        return [result for result in self.results if result.criterion in PERSONAL_CRITERIA]

    @property
    def academic(self):
        return [result for result in self.results if result.criterion in ACADEMIC_CRITERIA]

    def with_override(self, criterion, override):
        return EligibilityReport(tuple(
            replace(result, override=override) if result.criterion == criterion else result
            for result in self.results
        ))

    def as_dict(self):
        return {
            'overall': self.overall.value,
            'personal': [result.as_dict() for result in self.personal],
            'academic': [result.as_dict() for result in self.academic],
        }


def _threshold(value, violated):
    if value is None:
        return CriterionStatus.ATTENTION
    return CriterionStatus.FAILED if violated(value) else CriterionStatus.PASSED


def evaluate_criterion(criterion, attributes: ApplicantAttributes, config: CriteriaConfig):
    """Computed status of one criterion; missing data needs a manual check"""
    if criterion == Criterion.RESIDENCY:
        return _threshold(attributes.years_resident, lambda years: years < config.residency_years)
    if criterion == Criterion.VOTER:
        if not config.voter_required:
            return CriterionStatus.PASSED
        return _threshold(attributes.is_registered_voter, lambda registered: not registered)
    if criterion == Criterion.INCOME:
        return _threshold(attributes.monthly_family_income,
                          lambda income: income > config.income_threshold)
    if criterion == Criterion.AGE:
        return _threshold(attributes.age,
                          lambda age: age < config.age_min or age > config.age_max)
    if criterion == Criterion.ENROLLMENT:
        return _threshold(attributes.is_enrolled, lambda enrolled: not enrolled)
    if criterion == Criterion.GPA:
        return _threshold(attributes.gpa, lambda gpa: gpa < config.gpa_minimum)
    if criterion == Criterion.UNITS:
        return _threshold(attributes.enrolled_units, lambda units: units < config.units_minimum)
    if criterion == Criterion.GRADES:
        if config.allow_failing_grades:
            return CriterionStatus.PASSED
        return _threshold(attributes.has_failing_grades, lambda failing: failing)
    raise ValueError(f'Unknown criterion: {criterion}')


def evaluate(attributes, config=DEFAULT_CRITERIA, overrides=None):
    """
    Evaluate every criterion for one applicant.

    overrides maps a criterion to an Override (or a bare CriterionStatus).
    """
    overrides = overrides or {}
    results = []
    for criterion in Criterion:
        override = overrides.get(criterion)
        if override is not None and not isinstance(override, Override):
            override = Override(status=CriterionStatus(override))
        results.append(CriterionResult(
            criterion=criterion,
            computed=evaluate_criterion(criterion, attributes, config),
            override=override,
            description=config.describe(criterion),
        ))
    return EligibilityReport(tuple(results))
