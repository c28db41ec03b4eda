from django.db import models


class UserType(models.TextChoices):
    APPLICANT = 'applicant', 'Applicant'
    ADMIN = 'admin', 'Administrator'
    SUPER_ADMIN = 'super_admin', 'Super Administrator'


class ApplicationStatus(models.TextChoices):
    PENDING = 'pending', 'Pending'
    APPROVED = 'approved', 'Approved'
    REJECTED = 'rejected', 'Rejected'


# pending is the only state an administrator can move out of
APPLICATION_TRANSITIONS = {
    ApplicationStatus.PENDING: {ApplicationStatus.APPROVED, ApplicationStatus.REJECTED},
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
}


class CriterionStatus(models.TextChoices):
    PASSED = 'passed', 'Passed'
    ATTENTION = 'attention', 'Attention Needed'
    FAILED = 'failed', 'Failed'


class Criterion(models.TextChoices):
    RESIDENCY = 'residency', 'Taguig City Residency'
    VOTER = 'voter', 'Voter Registration Status'
    INCOME = 'income', 'Family Income Threshold'
    AGE = 'age', 'Age Requirement'
    ENROLLMENT = 'enrollment', 'Enrollment Status'
    GPA = 'gpa', 'GPA Requirement'
    UNITS = 'units', 'Full-time Course Load'
    GRADES = 'grades', 'Previous Academic Record'


PERSONAL_CRITERIA = (Criterion.RESIDENCY, Criterion.VOTER, Criterion.INCOME, Criterion.AGE)
ACADEMIC_CRITERIA = (Criterion.ENROLLMENT, Criterion.GPA, Criterion.UNITS, Criterion.GRADES)


class DocumentCategory(models.TextChoices):
    IDENTITY = 'identity', 'Identity'
    ACADEMIC = 'academic', 'Academic'
    OTHER = 'other', 'Other'


class DocumentStatus(models.TextChoices):
    PENDING = 'pending', 'Pending Verification'
    VERIFIED = 'verified', 'Verified'
    REUPLOAD = 'reupload', 'Re-upload Requested'
    DENIED = 'denied', 'Denied'
