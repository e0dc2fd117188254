from course_portal.models.student import Student, RegisteredCourse
from course_portal.models.course import Course, CourseCatalog, default_catalog

# This allows importing all models from course_portal.models
