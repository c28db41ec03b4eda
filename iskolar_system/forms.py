from django import forms
from django.core.exceptions import ValidationError
from django.utils import timezone

from .choices import ApplicationStatus, Criterion, CriterionStatus, DocumentStatus
from .eligibility import CriteriaConfig, DEFAULT_CRITERIA
from .filters import STATUS_ALL, STATUS_FILTER_CHOICES, ApplicationFilters
from .models import Application

CONFIRMATION_TEXT = 'DELETE'


class BootstrapModelForm(forms.ModelForm):
    """
    Base form to add Bootstrap 'form-control' class to all fields
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field_name, field in self.fields.items():
            if not isinstance(field.widget, forms.CheckboxInput):  # don't override checkboxes
                field.widget.attrs.update({'class': 'form-control'})


class BootstrapForm(forms.Form):
    """
    Base form to add Bootstrap 'form-control' class to all fields
    """
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for field_name, field in self.fields.items():
            if not isinstance(field.widget, forms.CheckboxInput):  # don't override checkboxes
                field.widget.attrs.update({'class': 'form-control'})


class ApplicationForm(BootstrapModelForm):
    """
    Applicant intake. Eligibility attributes may be left out and are then
    checked manually; anything given must be in range.
    """
    class Meta:
        model = Application
        fields = [
            'first_name', 'last_name', 'email_address', 'barangay', 'school',
            'years_of_residency', 'is_registered_voter', 'monthly_family_income', 'date_of_birth',
            'gpa', 'is_enrolled', 'enrolled_units', 'has_failing_grades',
        ]
        widgets = {
            'date_of_birth': forms.DateInput(attrs={'type': 'date'}),
            'gpa': forms.NumberInput(attrs={'step': '0.01', 'min': '0', 'max': '4'}),
            'monthly_family_income': forms.NumberInput(attrs={'step': '0.01', 'min': '0'}),
        }

    def clean_date_of_birth(self):
        date_of_birth = self.cleaned_data.get('date_of_birth')
        if date_of_birth and date_of_birth > timezone.localdate():
            raise forms.ValidationError('Date of birth cannot be in the future.')
        return date_of_birth


class CriteriaForm(BootstrapForm):
    """
    Criteria thresholds for a semester. Keys left out of the request keep
    their current value; nothing is clamped or defaulted to false.
    """
    residency_years = forms.IntegerField(required=False)
    voter_required = forms.NullBooleanField(required=False)
    income_threshold = forms.DecimalField(max_digits=12, decimal_places=2, required=False)
    age_min = forms.IntegerField(required=False)
    age_max = forms.IntegerField(required=False)
    gpa_minimum = forms.DecimalField(max_digits=3, decimal_places=2, required=False)
    units_minimum = forms.IntegerField(required=False)
    allow_failing_grades = forms.NullBooleanField(required=False)

    def __init__(self, *args, current=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.current = current or DEFAULT_CRITERIA

    def clean(self):
        cleaned_data = super().clean()
        if self.errors:
            return cleaned_data

        values = self.current.as_dict()
        values.update({name: value for name, value in cleaned_data.items() if value is not None})
        try:
            cleaned_data['config'] = CriteriaConfig.from_mapping(values)
        except ValidationError as e:
            self.add_error(None, e)
        return cleaned_data


class ReleaseForm(BootstrapForm):
    semester_id = forms.IntegerField()
    release_type = forms.CharField(max_length=50)
    release_date = forms.DateField(widget=forms.DateInput(attrs={'type': 'date'}))
    release_time = forms.TimeField(widget=forms.TimeInput(attrs={'type': 'time'}))
    barangay = forms.CharField(max_length=100)
    location = forms.CharField(max_length=200)
    amount_per_student = forms.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    number_of_recipients = forms.IntegerField(min_value=0, required=False)
    additional_notes = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))

    def clean_number_of_recipients(self):
        # missing recipients contribute nothing to the payout
        return self.cleaned_data.get('number_of_recipients') or 0


class ApplicationFilterForm(BootstrapForm):
    search = forms.CharField(required=False)
    date_from = forms.DateField(required=False)
    date_to = forms.DateField(required=False)
    status = forms.ChoiceField(choices=STATUS_FILTER_CHOICES, required=False)
    page = forms.IntegerField(required=False)

    def clean(self):
        cleaned_data = super().clean()
        date_from = cleaned_data.get('date_from')
        date_to = cleaned_data.get('date_to')
        if date_from and date_to and date_from > date_to:
            self.add_error('date_to', 'End date must be on or after start date')
        return cleaned_data

    def to_filters(self):
        return ApplicationFilters(
            search=self.cleaned_data.get('search') or '',
            date_from=self.cleaned_data.get('date_from'),
            date_to=self.cleaned_data.get('date_to'),
            status=self.cleaned_data.get('status') or STATUS_ALL,
        )


class StatusChangeForm(BootstrapForm):
    status = forms.ChoiceField(choices=[
        (ApplicationStatus.APPROVED, ApplicationStatus.APPROVED.label),
        (ApplicationStatus.REJECTED, ApplicationStatus.REJECTED.label),
    ])
    reason = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))


class CriterionOverrideForm(BootstrapForm):
    criterion = forms.ChoiceField(choices=Criterion.choices)
    status = forms.ChoiceField(choices=CriterionStatus.choices)
    note = forms.CharField(required=False, widget=forms.Textarea(attrs={'rows': 3}))


class DocumentStatusForm(BootstrapForm):
    status = forms.ChoiceField(choices=DocumentStatus.choices)
    note = forms.CharField(required=False, max_length=255)


class DangerZoneForm(BootstrapForm):
    password = forms.CharField(widget=forms.PasswordInput)
    confirmation_text = forms.CharField()

    def clean_confirmation_text(self):
        confirmation_text = self.cleaned_data.get('confirmation_text')
        if confirmation_text != CONFIRMATION_TEXT:
            raise forms.ValidationError(f'Confirmation text must be exactly "{CONFIRMATION_TEXT}"')
        return confirmation_text


class ResetSemesterForm(DangerZoneForm):
    semester_id = forms.IntegerField()


class DeleteDraftsForm(DangerZoneForm):
    older_than_days = forms.IntegerField(min_value=7)


class PurgeUsersForm(DangerZoneForm):
    inactive_days = forms.IntegerField(min_value=30)


class ExportForm(BootstrapForm):
    type = forms.CharField()
    semester_id = forms.IntegerField(required=False)


def form_errors(form):
    """{field: [messages]} for a bound, invalid form"""
    return {
        field: [error['message'] for error in errors]
        for field, errors in form.errors.get_json_data().items()
    }
